"""Infrastructure shared by the media library service: config, logging, errors, stores."""
