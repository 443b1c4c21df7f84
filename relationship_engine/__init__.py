"""
Contact relationship intelligence engine.

Turns a practitioner's calendar and messaging history with one contact into
a maintained classification: lifecycle stage, tags, confidence score and an
optional narrative note.
"""

__version__ = "0.1.0"
