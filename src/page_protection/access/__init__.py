"""Access evaluation.

This subpackage decides who may access a protected page:

* **evaluate** -- the pure ALLOW/DENY decision for a rule and a set of
  user groups.
* **lockout_check** -- the same decision for the rule a save would
  introduce, reported as a prevented lockout.
* **PageGuard** -- the read and save pipelines that fetch rules and
  groups, call the evaluator and raise its errors.
"""
from __future__ import annotations

from page_protection.access.evaluator import evaluate, lockout_check
from page_protection.access.guard import PageGuard

__all__ = [
    "evaluate",
    "lockout_check",
    "PageGuard",
]
