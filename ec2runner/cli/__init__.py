"""CLI argument parsing and handling."""

from __future__ import annotations

from ec2runner.cli.parsing import (
    effective_max_wait,
    parse_int_input,
    parse_security_group_ids,
    parse_tag_specifications,
)

__all__ = [
    "effective_max_wait",
    "parse_int_input",
    "parse_security_group_ids",
    "parse_tag_specifications",
]
