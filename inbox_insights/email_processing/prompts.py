"""
Prompt templates for every LLM stage.

Each template interpolates structured input fields into instruction text
that asks the model for one specific JSON shape. Templates are plain
functions so they can be unit-tested without a model.
"""

import json
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence


def format_received_time(timestamp_ms: Optional[int]) -> str:
    """Render a receive timestamp in local time, or now when it is unknown."""
    moment = datetime.fromtimestamp(timestamp_ms / 1000) if timestamp_ms else datetime.now()
    return moment.strftime("%Y-%m-%d %H:%M:%S")


def _read_status(is_read: bool) -> str:
    return "Read" if is_read else "Unread"


def classification_prompt(
    subject: str,
    sender: str,
    content: str,
    is_read: bool,
    timestamp: Optional[int]
) -> str:
    return f"""
    Analyze this email and classify its priority. Be thorough and consider all aspects:
    From: {sender}
    Subject: {subject}
    Content: {content}
    Read Status: {_read_status(is_read)}
    Time Received: {format_received_time(timestamp)}

    Consider:
    - Sender importance and relationship
    - Time sensitivity of the content
    - Action requirements
    - Business impact
    - Personal impact
    - Whether the email has been read
    - How long ago the email was received

    Respond with a JSON object containing:
    - priority: Must be exactly "Urgent", "Important", or "Normal"
    - reasoning: Explanation for the priority classification
    - confidence: Number between 0 and 1 indicating confidence in classification
    """


def summary_prompt(
    subject: str,
    content: str,
    is_read: bool,
    timestamp: Optional[int]
) -> str:
    return f"""
    Provide a detailed analysis of this email:
    Subject: {subject}
    Content: {content}
    Read Status: {_read_status(is_read)}
    Time Received: {format_received_time(timestamp)}

    Consider the email's read status and time received when suggesting actions.
    If the email is unread and recent, consider suggesting immediate review.

    Respond with a JSON object containing:
    - keyPoints: Array of main points from the email
    - actionItems: Array of required actions
    - suggestedResponse: Optional response suggestion
    - confidence: Number between 0 and 1 indicating confidence in analysis
    """


def evaluation_prompt(
    subject: str,
    content: str,
    classification: Dict[str, Any],
    summary: Dict[str, Any]
) -> str:
    return f"""
    Evaluate the quality and accuracy of this email analysis:

    Original Email:
    Subject: {subject}
    Content: {content}

    Current Analysis:
    Classification: {json.dumps(classification)}
    Summary: {json.dumps(summary)}

    Evaluate:
    1. Does the priority level match the content?
    2. Are the key points accurate and complete?
    3. Are action items correctly identified?
    4. Is the confidence appropriate?

    Respond with a JSON object containing:
    - isAccurate: Boolean indicating if analysis is accurate
    - improvementNeeded: Boolean indicating if improvements are needed
    - reasonForImprovement: Optional string explaining why improvement is needed
    - suggestedImprovements: Optional array of suggested improvements
    """


def improvement_prompt(
    subject: str,
    content: str,
    previous_analysis: Dict[str, Any],
    improvements: Optional[Sequence[str]]
) -> str:
    return f"""
    Improve the email analysis based on the suggested improvements:

    Original Email:
    Subject: {subject}
    Content: {content}

    Previous Analysis: {json.dumps(previous_analysis)}
    Suggested Improvements: {json.dumps(list(improvements) if improvements is not None else None)}

    Respond with a JSON object containing:
    - classification: Object with priority, reasoning, and confidence
    - summary: Object with keyPoints, actionItems, suggestedResponse, and confidence
    """


def skill_demand_prompt(emails: List[Dict[str, str]]) -> str:
    return f"""
    You are a data analyst specializing in freelance market trends and skill demand analysis.

    I want you to analyze these {len(emails)} Upwork job emails to identify the most in-demand skills,
    technologies, and project categories. Focus on identifying patterns and trends.

    Upwork Emails:
    {json.dumps(emails)}

    Analyze these emails and provide:

    1. The top 10 most requested technologies (like React, Node.js, etc.) with a demand score (1-10)
    2. The top 5 categories of work (like AI Development, Frontend Development, etc.) with a demand score (1-10)
    3. The top 10 specific skills (like API Integration, UI/UX Design, etc.) with a demand score (1-10)
    4. 5 emerging trends you've noticed in these job postings
    5. 5 key insights about what clients are looking for

    IMPORTANT:
    - Exclude WordPress, PHP, and Laravel from your analysis
    - Focus on modern technologies and approaches
    - Be specific and data-driven in your analysis
    - Use the actual frequency of mentions in the emails to determine demand scores

    Respond with a JSON object containing:
    - topTechnologies: Array of {{name, demandScore}} objects
    - topCategories: Array of {{category, demandScore}} objects
    - topSkills: Array of {{skill, demandScore}} objects
    - emergingTrends: Array of strings
    - insights: Array of strings
    """


def portfolio_prompt(skill_demand_analysis: Dict[str, Any], count: int = 15) -> str:
    return f"""
    You are a creative portfolio advisor specializing in helping developers showcase their skills effectively.

    Based on this analysis of in-demand skills and technologies from Upwork job postings:
    {json.dumps(skill_demand_analysis)}

    Generate {count} HIGHLY ORIGINAL portfolio project ideas that would:
    1. Showcase the most in-demand skills and technologies identified in the analysis
    2. Demonstrate technical expertise and problem-solving abilities
    3. Be visually impressive and stand out to potential clients
    4. Be practical to complete in a reasonable timeframe (1-4 weeks)
    5. Highlight modern technologies and approaches

    IMPORTANT CONSTRAINTS:
    - DO NOT suggest any WordPress, PHP, or Laravel-related projects
    - DO NOT suggest generic or common projects like "e-commerce site" or "blog platform"
    - Each project must be highly original, creative, and specific
    - Focus on projects that combine multiple in-demand skills in interesting ways
    - Include a mix of difficulty levels (beginner, intermediate, advanced)
    - Include projects that demonstrate both frontend and backend capabilities
    - Projects should NOT directly match typical job postings but instead showcase the same skills

    Make each project idea SPECIFIC and UNIQUE - not generic templates. For example, instead of "AI Chatbot",
    suggest "Personalized Nutrition Coach AI that analyzes food photos and provides tailored advice".

    Respond with an array of exactly {count} JSON objects, each containing:
    - projectTitle: A clear, concise, creative title for the portfolio project
    - projectDescription: Detailed description of what the project entails and its unique features (at least 3 sentences)
    - relevantSkills: Array of at least 5 specific skills this project would showcase
    - difficultyLevel: Must be exactly "Beginner", "Intermediate", or "Advanced"
    - estimatedTimeToComplete: Estimated time to complete (e.g., "2-3 days", "1-2 weeks")
    - whyRelevant: Explanation of why this project would impress clients and showcase abilities (at least 2 sentences)
    - confidence: Number between 0 and 1 indicating confidence in this suggestion
    """
