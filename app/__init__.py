"""Process runtime for Publish Alert: configuration, logging, health check, entry point."""
