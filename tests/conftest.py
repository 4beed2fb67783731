"""Shared pytest setup.

Puts the repository root and src/ on sys.path so the suite runs from a plain
checkout: `mail_downloader` imports without an editable install, and
`tests.fakes` resolves as a package module.
"""
import os
import sys

_REPO = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

for path in (os.path.join(_REPO, 'src'), _REPO):
    if path not in sys.path:
        sys.path.insert(0, path)
