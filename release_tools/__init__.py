"""
Script: release_tools package
What: Holds Python helpers for the release pipeline workflows.
Doing: Groups CLI entrypoints and shared utility code in one importable package.
Why: Keeps publish, permission, and pull-request logic readable and testable instead of spreading it across action scripts.
Goal: Provide a clear, maintainable home for release pipeline logic.
"""
