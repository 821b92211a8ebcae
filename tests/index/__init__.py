"""Tests for the existing-name index."""
