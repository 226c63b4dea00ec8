"""Test doubles for svnrepo."""

from .fake_svn import FakeSvnTree

__all__ = ["FakeSvnTree"]
