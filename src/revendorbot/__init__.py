"""RevendorBot keeps vendored Go module dependencies in sync on GitHub.

This package provides:
- GitHub webhook parsing and classification (push, "/revendor" comments)
- Detection of go.mod/go.sum changes through the GitHub API
- Workspace provisioning with guaranteed cleanup
- The tidy/vendor/commit/push revendor workflow under a deadline
- Status comments reported back on the pull request
"""
