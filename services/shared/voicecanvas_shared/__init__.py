"""Shared library for the VoiceCanvas services."""
