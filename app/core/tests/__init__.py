"""Tests for shared infrastructure."""
