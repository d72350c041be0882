"""typesnap command line interface."""
