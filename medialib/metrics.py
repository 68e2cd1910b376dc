"""Prometheus metrics for the media library service."""
from prometheus_client import CONTENT_TYPE_LATEST, Counter, generate_latest

tracks_ingested_total = Counter(
    'medialib_tracks_ingested_total',
    'Total number of tracks ingested'
)

tracks_deleted_total = Counter(
    'medialib_tracks_deleted_total',
    'Total number of tracks deleted'
)

track_file_removal_failures_total = Counter(
    'medialib_track_file_removal_failures_total',
    'File removals that failed after the track row was deleted'
)

upload_bytes_total = Counter(
    'medialib_upload_bytes_total',
    'Total bytes written to the file store by uploads'
)

streaming_bytes_sent_total = Counter(
    'medialib_streaming_bytes_sent_total',
    'Total bytes sent for streaming'
)

streams_started_total = Counter(
    'medialib_streams_started_total',
    'Total number of streams started',
    ['status']  # 'full', 'partial'
)

playlist_memberships_added_total = Counter(
    'medialib_playlist_memberships_added_total',
    'Membership add requests, including duplicates that were ignored'
)


def get_metrics() -> bytes:
    """Render all registered metrics in the Prometheus exposition format."""
    return generate_latest()


METRICS_CONTENT_TYPE = CONTENT_TYPE_LATEST
