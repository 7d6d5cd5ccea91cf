"""Test suite for the scorecard backend."""
