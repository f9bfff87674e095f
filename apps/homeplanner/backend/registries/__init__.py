"""Static registries loaded once at process start."""
