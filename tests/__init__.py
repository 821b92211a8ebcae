"""Tests for csvharvest."""
