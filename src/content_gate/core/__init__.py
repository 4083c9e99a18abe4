"""Engine layer — discovery, configuration and the scan pipeline."""
