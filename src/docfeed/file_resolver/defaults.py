"""
Default include and exclude patterns for source discovery.

These patterns use glob syntax. An include without a `/` or `**` prefix matches at
any depth; an exclude without a `/` only matches entries at the top of a root.
"""

from __future__ import annotations

DEFAULT_INCLUDES: list[str] = [
    "*.py",
    "*.js",
    "*.jsx",
    "*.ts",
    "*.tsx",
    "*.go",
    "*.java",
    "*.pyi",
    "*.pyx",
    "*.c",
    "*.cc",
    "*.cpp",
    "*.h",
    "*.md",
    "*.rst",
    "*.json",
    "*Dockerfile",
    "*Makefile",
    "*.yaml",
    "*.yml",
]

# Paths that rarely hold source worth feeding to a generator.
DEFAULT_EXCLUDES: list[str] = [
    # Generated output
    "assets/**",
    "data/**",
    "images/**",
    "public/**",
    "static/**",
    "temp/**",
    "**/dist/**",
    "**/*build/**",
    "**/*obj/**",
    "**/*bin/**",
    # Docs and examples
    "**/*docs/**",
    "**/*doc/**",
    "**/*examples/**",
    "**/playgrounds/**",
    # Tests
    "*test*",
    "**/*test/**",
    "**/*tests/**",
    "**/*test.*",
    # Environments and dependencies
    "**/vendor/**",
    "**/*venv/**",
    "*.venv/**",
    "**/*node_modules/**",
    # Stale code
    "v1/**",
    "**/*experimental/**",
    "**/*deprecated/**",
    "**/*misc/**",
    "**/*legacy/**",
    # Tooling
    ".git/**",
    ".github/**",
    ".next/**",
    ".vscode/**",
    "*.log",
]

# Always excluded, whatever the caller passes. Added only when not already present.
BASELINE_EXCLUDES: list[str] = ["node_modules/**", "test/**", "temp/**"]
