"""Version information for worktree-manager."""

try:
    from worktree_manager._version import __version__
except ImportError:
    # Running from a source checkout without a generated version file
    __version__ = "0.0.0+unknown"
