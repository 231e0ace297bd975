"""Recruitment assistant: a guided questionnaire presented as a chat."""
