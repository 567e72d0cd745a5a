"""nifi-spine command line interface."""
