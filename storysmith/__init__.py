"""
StorySmith - shell story parsing and completion marking for Jira epics.
"""

__version__ = "0.4.0"
