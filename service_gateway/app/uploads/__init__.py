"""
Upload intake package.
"""

from .intake import UploadIntake

__all__ = ["UploadIntake"]
