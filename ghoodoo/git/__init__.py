"""Parsing of task references out of git commit and pull request text."""

from ghoodoo.git.references import parse_references

__all__ = ["parse_references"]
