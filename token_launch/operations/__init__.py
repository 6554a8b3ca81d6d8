"""Protocol-independent launch operations"""

from .deploy import TokenDeployer, load_artifact

__all__ = ["TokenDeployer", "load_artifact"]
