"""
Inbox Insights

LLM-driven Gmail triage with a self-evaluating analysis pipeline, plus
skill-demand analytics and portfolio project generation from Upwork job
notifications.
"""

__version__ = "1.0.0"
