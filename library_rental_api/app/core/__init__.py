"""Configuration, logging, persistence and error types shared by all services."""
