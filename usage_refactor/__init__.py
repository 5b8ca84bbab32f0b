from usage_refactor.arg_splitter import CallArguments, split_call_arguments
from usage_refactor.call_locator import CallMatch, find_function_call
from usage_refactor.config import RefactorConfig
from usage_refactor.engine import RewriteEngine, RewriteRecord, RunContext
from usage_refactor.errors import (
    CallNotFound,
    LineOverflow,
    MalformedCall,
    MalformedReport,
    RefactorError,
    UnbalancedCall,
)
from usage_refactor.files import DryRunStore, FileStore
from usage_refactor.policies import CallSite, DiagnosticPolicy, LeadingArgumentPolicy, build_policy
from usage_refactor.report_parser import SourceLocation, parse_report, parse_report_file

__version__ = "0.1.0"
