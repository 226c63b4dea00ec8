"""Command-line interface for svnrepo."""
