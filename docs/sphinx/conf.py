# Copyright 2026 wRPC Contributors
# SPDX-License-Identifier: Apache-2.0

"""Sphinx configuration for the wRPC documentation."""

project = "wRPC"
author = "wRPC Contributors"
release = "0.1.0"

extensions: list[str] = ["sphinx.ext.autodoc", "sphinx.ext.napoleon"]

html_theme = "alabaster"
