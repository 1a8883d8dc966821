"""Core upload engine: configuration, errors, logging and the upload module."""
