"""
svnrepo - Virtual package repositories over SVN trees.

Lists providers and their tags/trunk versions from SVN repositories such as
the WordPress plugin and theme directories, and synthesizes installable
package records for a dependency resolver.
"""

__version__ = "0.1.0"
__author__ = "svnrepo Team"

from .errors import SvnRepoError, SvnRepoErrorCode

__all__ = ["SvnRepoError", "SvnRepoErrorCode"]
