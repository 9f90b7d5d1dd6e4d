#!/usr/bin/env python3
"""Convenience entry script for the Lanczos upscaler."""

from __future__ import annotations

from lanczos_upscaler.cli import main


if __name__ == "__main__":
    main()
