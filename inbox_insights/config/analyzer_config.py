# config/analyzer_config.py

ANALYZER_CONFIG = {
    "email_pipeline": {
        "stages": {
            "classify": {"temperature": 0.2, "max_tokens": 1024},
            "summarize": {"temperature": 0.2, "max_tokens": 1024},
            "evaluate": {"temperature": 0.2, "max_tokens": 1024},
            "improve": {"temperature": 0.2, "max_tokens": 2048},
        },
        # Declared but not consulted: improvement is gated only by the
        # evaluator's improvementNeeded flag.
        "confidence_threshold": 0.8,
    },
    "market_analysis": {
        "stages": {
            "skill_demand": {"temperature": 0.2, "max_tokens": 4096},
            # Higher temperature for more varied project ideas
            "portfolio": {"temperature": 0.7, "max_tokens": 8192},
        },
        "vendor_domains": [
            "upwork.com",
            "notifications.upwork.com",
            "upwork notification",
        ],
        "target_suggestions": 15,
    },
    "mailbox": {
        "fetch_limit": 10,
        "batch_request_size": 100,
        "scopes": [
            "https://www.googleapis.com/auth/gmail.readonly",
            "https://www.googleapis.com/auth/gmail.labels",
            "https://www.googleapis.com/auth/gmail.modify",
        ],
        "link_template": "https://mail.google.com/mail/u/0/#inbox/{id}",
    },
}
