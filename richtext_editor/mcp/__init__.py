# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
MCP (Model Context Protocol) module for the Rich Text Editor

This module contains the MCP server exposing editing sessions as tools.
"""

from .server import main, server

__all__ = ["main", "server"]
