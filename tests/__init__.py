"""
Test suite for pptx_interpreter project.

This module contains all unit tests for the pptx_interpreter package.
"""
