"""pinupload command line interface."""
