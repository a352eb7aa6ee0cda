"""
Centralized AI Service Manager
Drafts free text (cost analyses, actionable insights) with Anthropic Claude.
Handles retry logic, error handling, and configuration management.
"""
import json
import time
import logging
from typing import Optional, Dict, Any, List
from functools import wraps

import anthropic

logger = logging.getLogger(__name__)


class AIServiceError(Exception):
    """Base exception for AI service errors"""
    pass


class AIServiceUnavailable(AIServiceError):
    """Raised when AI service is not configured or unavailable"""
    pass


class AIServiceTimeout(AIServiceError):
    """Raised when AI service times out"""
    pass


def retry_on_failure(max_attempts=3, delay=2, backoff=2):
    """
    Decorator to retry function on failure with exponential backoff.
    AIServiceUnavailable is raised immediately.

    Args:
        max_attempts: Maximum number of retry attempts
        delay: Initial delay between retries (seconds)
        backoff: Multiplier for delay on each retry
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            current_delay = delay
            last_exception = None

            for attempt in range(max_attempts):
                try:
                    return func(*args, **kwargs)
                except AIServiceUnavailable:
                    raise
                except AIServiceError as e:
                    last_exception = e
                    logger.warning(
                        f"Attempt {attempt + 1}/{max_attempts} failed for {func.__name__}: {str(e)}"
                    )

                    if attempt < max_attempts - 1:
                        logger.info(f"Retrying in {current_delay} seconds...")
                        time.sleep(current_delay)
                        current_delay *= backoff
                    else:
                        logger.error(f"All {max_attempts} attempts failed for {func.__name__}")

            raise last_exception

        return wrapper
    return decorator


def response_text(response) -> str:
    """Join the text blocks of a Claude response."""
    parts = [block.text for block in getattr(response, 'content', []) or []
             if getattr(block, 'type', None) == 'text']
    return ''.join(parts).strip()


class AIService:
    """
    Centralized AI service manager with retry logic and error handling
    """

    def __init__(self, config):
        """
        Initialize AI service with configuration

        Args:
            config: Flask app configuration object (or any mapping)
        """
        self.config = config
        self.anthropic_client = None

        self._initialize_client()

    def _initialize_client(self):
        """Initialize the Anthropic client when an API key is configured"""
        api_key = self.config.get('ANTHROPIC_API_KEY')
        if not api_key:
            logger.warning("ANTHROPIC_API_KEY not set. AI drafting will be unavailable.")
            return

        try:
            self.anthropic_client = anthropic.Anthropic(
                api_key=api_key,
                timeout=self.config.get('AI_TIMEOUT', 120)
            )
            logger.info("Anthropic Claude client initialized")
        except Exception as e:
            logger.error(f"Failed to initialize Anthropic client: {e}")

    def is_available(self) -> bool:
        """Check if the text service is configured"""
        return self.anthropic_client is not None

    def call_claude(
        self,
        messages: List[Dict[str, Any]],
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        system: Optional[str] = None
    ):
        """
        Call Claude API with retry logic

        Args:
            messages: List of message dictionaries
            model: Model name (defaults to config)
            max_tokens: Maximum tokens (defaults to config)
            temperature: Temperature setting (defaults to config)
            system: System prompt

        Returns:
            Anthropic Message response

        Raises:
            AIServiceUnavailable: If Claude is not configured
            AIServiceError: On API errors, after retries
        """
        attempts = int(self.config.get('AI_RETRY_ATTEMPTS', 3))
        delay = int(self.config.get('AI_RETRY_DELAY', 2))

        @retry_on_failure(max_attempts=attempts, delay=delay, backoff=2)
        def _call():
            return self._call_claude_once(messages, model, max_tokens, temperature, system)

        return _call()

    def _call_claude_once(self, messages, model, max_tokens, temperature, system):
        if not self.anthropic_client:
            raise AIServiceUnavailable("Anthropic Claude is not configured")

        # Use config defaults if not specified
        model_config = self.config['AI_MODELS']['claude']
        model = model or model_config['model']
        max_tokens = max_tokens or model_config['max_tokens']
        temperature = temperature if temperature is not None else model_config['temperature']

        try:
            logger.info(f"Calling Claude API: model={model}, max_tokens={max_tokens}")

            params = {
                'model': model,
                'max_tokens': max_tokens,
                'temperature': temperature,
                'messages': messages,
            }
            if system:
                params['system'] = system

            response = self.anthropic_client.messages.create(**params)

            logger.info(f"Claude API call successful: stop_reason={response.stop_reason}")
            return response

        except anthropic.APITimeoutError as e:
            logger.error(f"Claude API timeout: {e}")
            raise AIServiceTimeout(f"Claude API timed out: {e}")
        except anthropic.APIError as e:
            logger.error(f"Claude API error: {e}")
            raise AIServiceError(f"Claude API error: {e}")

    def generate_insight(self, prompt: str, context: Dict[str, Any]) -> str:
        """
        Perform a requested action against a blob of business data

        Args:
            prompt: What to do, e.g. "Draft a payment reminder email"
            context: JSON-serializable business data

        Returns:
            Ready-to-use text
        """
        full_prompt = (
            "Based on the following business data, perform the requested action.\n"
            f"Data: {json.dumps(context, default=str)}\n\n"
            f"Action: \"{prompt}\"\n\n"
            "Provide a direct, ready-to-use response."
        )
        response = self.call_claude(messages=[{'role': 'user', 'content': full_prompt}])
        return response_text(response)

    def draft_cost_analysis(self, job: Dict[str, Any], breakdown: Dict[str, Any],
                            summary: Dict[str, Any]) -> str:
        """
        Ask for a short cost analysis of a print job

        Args:
            job: Job order dict
            breakdown: Recomputed estimated breakdown as a dict
            summary: job_cost_summary() result

        Returns:
            Analysis text
        """
        context = {
            'job_name': job.get('job_name'),
            'description': job.get('description'),
            'quantity': job.get('quantity'),
            'paper_type': job.get('paper_type'),
            'size': job.get('size'),
            'finishing': job.get('finishing'),
            'cost_breakdown': breakdown,
            'profitability': summary,
        }
        prompt = (
            "Analyze the costs of this print job. Point out the largest cost drivers, "
            "comment on the profit margin and, if actual costs are present, the budget "
            "variance. Suggest up to three concrete ways to reduce cost. Keep it under 200 words."
        )
        return self.generate_insight(prompt, context)
