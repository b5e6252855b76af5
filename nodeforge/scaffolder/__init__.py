"""nodeforge scaffolder -- lays down the project skeleton.

Quick usage::

    from nodeforge.config import GeneratorConfig, ProjectChoice
    from nodeforge.scaffolder import ProjectStructureBuilder

    builder = ProjectStructureBuilder(GeneratorConfig(base_dir=Path("/tmp")))
    result = await builder.build(choice)
"""

from nodeforge.scaffolder.files import FileWriter
from nodeforge.scaffolder.structure import BuildResult, ProjectStructureBuilder
from nodeforge.scaffolder.templates import TemplateStore

__all__ = [
    "BuildResult",
    "FileWriter",
    "ProjectStructureBuilder",
    "TemplateStore",
]
