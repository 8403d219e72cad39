"""Command line tool for checking out and polling a BitKeeper repository."""
