from .analyzers import build_email_stage_registry
from .base import AnalysisStage, StageName, StageRegistry
from .handlers import EmailDateService
from .models import (
    ClassificationResult,
    EmailMessage,
    EvaluationResult,
    ImprovedAnalysis,
    Priority,
    ProcessedEmail,
    SummaryResult,
    TimeOfDay,
)
from .parsing import extract_json, extract_text, recover_portfolio_projects
from .processor import EmailProcessor

__all__ = [
    'AnalysisStage',
    'ClassificationResult',
    'EmailDateService',
    'EmailMessage',
    'EmailProcessor',
    'EvaluationResult',
    'ImprovedAnalysis',
    'Priority',
    'ProcessedEmail',
    'StageName',
    'StageRegistry',
    'SummaryResult',
    'TimeOfDay',
    'build_email_stage_registry',
    'extract_json',
    'extract_text',
    'recover_portfolio_projects'
]
