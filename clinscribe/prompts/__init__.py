"""Prompt templates and context builders."""
