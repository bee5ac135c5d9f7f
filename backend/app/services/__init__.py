"""Services package for progress tracking and analytics."""
