"""tagrelease: tag-triggered, multi-platform build and release pipeline.

On a version tag push, builds one binary per target platform in parallel,
renames each to a platform-qualified asset name, creates a release for the
tag and attaches every asset to it.
"""

__version__ = "0.1.0"
__description__ = "Tag-triggered multi-platform build and release pipeline"

from tagrelease.core.controller import PipelineController
from tagrelease.cli.app import app as cli

__all__ = ["PipelineController", "cli", "__version__"]
