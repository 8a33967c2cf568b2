"""Parser for ``git log`` output in the ``GIT_LOG_FORMAT`` wire format.

Ten fields per commit separated by NUL, then the body, then ``\\x01`` as the
record terminator. The body (``%b``) can itself contain NUL, so everything
after the subject is rejoined rather than read as one field. Changing the
format string means changing ``parse_git_log`` in the same commit.
"""

from __future__ import annotations

from typegit.constants import FIELD_SEPARATOR, RECORD_SEPARATOR
from typegit.parsers.models import Commit, Signature

__all__ = ["GIT_LOG_FORMAT", "LOG_FORMAT_ARG", "parse_git_log"]

GIT_LOG_FORMAT = (
    "%H%x00%h%x00%P%x00%an%x00%ae%x00%at%x00%cn%x00%ce%x00%ct%x00%s%x00%b%x01"
)

#: Ready-made ``git log`` argument for ``GIT_LOG_FORMAT``.
LOG_FORMAT_ARG = f"--format={GIT_LOG_FORMAT}"

_FIXED_FIELDS = 10


def _parse_timestamp(value: str) -> int:
    try:
        return int(value.strip())
    except ValueError:
        return 0


def parse_git_log(stdout: str) -> list[Commit]:
    """Parse ``git log --format=<GIT_LOG_FORMAT>`` output.

    Records with fewer than ten fields or without a hash are dropped.

    Args:
        stdout: Raw log output.

    Returns:
        Commits in output order; empty for empty input.
    """
    commits: list[Commit] = []

    for record in stdout.split(RECORD_SEPARATOR):
        if not record.strip():
            continue

        fields = record.split(FIELD_SEPARATOR)
        if len(fields) < _FIXED_FIELDS:
            continue

        # git puts a newline between records, so it leads the next hash
        commit_hash = fields[0].strip()
        abbrev_hash = fields[1].strip()
        if not commit_hash or not abbrev_hash:
            continue

        commits.append(
            Commit(
                hash=commit_hash,
                abbrev_hash=abbrev_hash,
                parents=tuple(p for p in fields[2].split(" ") if p),
                author=Signature(
                    name=fields[3],
                    email=fields[4],
                    timestamp=_parse_timestamp(fields[5]),
                ),
                committer=Signature(
                    name=fields[6],
                    email=fields[7],
                    timestamp=_parse_timestamp(fields[8]),
                ),
                subject=fields[9],
                body=FIELD_SEPARATOR.join(fields[_FIXED_FIELDS:]).strip(),
            )
        )

    return commits
