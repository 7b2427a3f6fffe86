"""
Evaluation of a single rule against a single message.

RuleEvaluator is pure: it reads the rule's type and configuration and the
message text, and never touches the store. Any fault while evaluating is
downgraded to an ``allow`` outcome so one malformed rule cannot block the
whole evaluation run.
"""

import re
from typing import Any, Callable, Dict, List
from urllib.parse import urlsplit

from loguru import logger as default_logger

from rules_service.models import RuleAction, RuleType
from rules_service.rules.schemas import (
    ContentFilterConfig,
    Evaluation,
    KeywordFilterConfig,
    UrlFilterConfig,
)

URL_REGEX = re.compile(r"https?://[^\s]+")

UNKNOWN_RULE_TYPE_REASON = "unknown rule type"
EVALUATION_ERROR_REASON = "evaluation error"


def message_text(message: Any) -> str:
    """Text to match: ``text`` if present, else ``content``, else empty."""
    if message is None:
        return ""
    if isinstance(message, dict):
        text, content = message.get("text"), message.get("content")
    else:
        text = getattr(message, "text", None)
        content = getattr(message, "content", None)
    return text or content or ""


def extract_urls(text: str) -> List[str]:
    return URL_REGEX.findall(text)


def extract_domain(url: str) -> str:
    """Host part of a URL, or the URL itself when no host can be parsed."""
    try:
        host = urlsplit(url).hostname
    except ValueError:
        return url
    return host or url


def count_occurrences(keyword: str, text: str) -> int:
    """Case-insensitive occurrences of keyword, treated as a regex when valid."""
    try:
        regex = re.compile(keyword, re.IGNORECASE)
    except re.error:
        regex = re.compile(re.escape(keyword), re.IGNORECASE)
    return sum(1 for _ in regex.finditer(text))


def _no_match(reason: str) -> Evaluation:
    return Evaluation(action=RuleAction.ALLOW.value, reason=reason, matched=False)


class RuleEvaluator:
    """Evaluates one rule against one message."""

    def __init__(self, logger=default_logger):
        self.logger = logger
        self._handlers: Dict[str, Callable[[Dict[str, Any], str], Evaluation]] = {
            RuleType.KEYWORD_FILTER.value: self.evaluate_keyword_filter,
            RuleType.URL_FILTER.value: self.evaluate_url_filter,
            RuleType.CONTENT_FILTER.value: self.evaluate_content_filter,
        }

    def evaluate(self, rule: Any, message: Any) -> Evaluation:
        try:
            handler = self._handlers.get(rule.rule_type)
            if handler is None:
                return _no_match(UNKNOWN_RULE_TYPE_REASON)
            return handler(rule.rule_config, message_text(message))
        except Exception as e:
            self.logger.opt(exception=True).error(
                f"Rule evaluation failed for rule {getattr(rule, 'id', None)}: {e}"
            )
            return Evaluation(
                action=RuleAction.ALLOW.value,
                reason=EVALUATION_ERROR_REASON,
                matched=False,
                error=str(e),
            )

    def evaluate_keyword_filter(self, config: Dict[str, Any], text: str) -> Evaluation:
        parsed = KeywordFilterConfig.model_validate(config)

        match_count = 0
        matched_keywords = []
        for keyword in parsed.keywords:
            occurrences = count_occurrences(keyword, text)
            if occurrences:
                match_count += occurrences
                matched_keywords.append(keyword)

        if match_count < parsed.max_occurrences:
            return _no_match("No keyword matches")

        return Evaluation(
            action=parsed.action,
            reason=f"Matched {match_count} keywords: {', '.join(matched_keywords)}",
            matched=True,
        )

    def evaluate_url_filter(self, config: Dict[str, Any], text: str) -> Evaluation:
        parsed = UrlFilterConfig.model_validate(config)

        urls = extract_urls(text)
        if not urls:
            return _no_match("No URLs found")

        # First decisive URL wins, including an allow-listed domain
        for url in urls:
            if parsed.domains:
                domain = extract_domain(url)
                if any(allowed in domain for allowed in parsed.domains):
                    return _no_match(f"Domain allowed: {domain}")

            for pattern in parsed.patterns or []:
                if re.search(pattern, url):
                    return Evaluation(
                        action=parsed.action,
                        reason=f"URL matched pattern: {pattern}",
                        matched=True,
                    )

        return _no_match("No URL restrictions matched")

    def evaluate_content_filter(self, config: Dict[str, Any], text: str) -> Evaluation:
        parsed = ContentFilterConfig.model_validate(config)

        for content_filter in parsed.filters:
            if content_filter.type == "regex" and content_filter.pattern is not None:
                if re.search(content_filter.pattern, text):
                    label = content_filter.name or content_filter.pattern
                    return Evaluation(
                        action=parsed.action,
                        reason=f"Content matched filter: {label}",
                        matched=True,
                    )

            if content_filter.type == "length" and content_filter.max_length is not None:
                if len(text) > content_filter.max_length:
                    return Evaluation(
                        action=parsed.action,
                        reason=f"Content too long: {len(text)} > {content_filter.max_length}",
                        matched=True,
                    )

        return _no_match("No content filters matched")
