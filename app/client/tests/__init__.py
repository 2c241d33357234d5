"""Tests for the chat client package."""
