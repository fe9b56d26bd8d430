"""Project archiving."""

from communicator.infrastructure.archive.project_archiver import ProjectArchiver

__all__ = ["ProjectArchiver"]
