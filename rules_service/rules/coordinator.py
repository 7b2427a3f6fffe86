"""
Aggregates per-rule evaluations into the final allow/block decision.
"""

from typing import Any

from loguru import logger as default_logger

from rules_service.models import RuleAction
from rules_service.rules.evaluator import RuleEvaluator
from rules_service.rules.schemas import EvaluationResponse, RuleEvaluationResult
from rules_service.rules.service import RuleService


class EvaluationCoordinator:
    """
    Runs every active rule of an owner against a message.

    Rules are evaluated sequentially in the store's priority-then-recency
    order and the scan never stops early, so the caller always gets a complete
    per-rule report. Only a matched rule whose action is exactly ``block``
    blocks the message; ``flag`` matches are reported but do not block.
    """

    def __init__(
        self,
        rule_service: RuleService,
        evaluator: RuleEvaluator,
        logger=default_logger,
    ):
        self.rule_service = rule_service
        self.evaluator = evaluator
        self.logger = logger

    async def evaluate_all(self, user_id: str, message: Any) -> EvaluationResponse:
        rules = await self.rule_service.list_rules(user_id, is_active=True)

        evaluations = []
        for rule in rules:
            outcome = self.evaluator.evaluate(rule, message)
            evaluations.append(
                RuleEvaluationResult(
                    rule_id=rule.id,
                    rule_name=rule.rule_name,
                    rule_type=rule.rule_type,
                    **outcome.model_dump(),
                )
            )

        blocking_rules = [
            evaluation
            for evaluation in evaluations
            if evaluation.matched and evaluation.action == RuleAction.BLOCK.value
        ]
        final_action = (
            RuleAction.BLOCK.value if blocking_rules else RuleAction.ALLOW.value
        )

        self.logger.info(
            f"Evaluated {len(evaluations)} rules for user {user_id}: "
            f"final_action={final_action}, blocking={len(blocking_rules)}"
        )

        return EvaluationResponse(
            final_action=final_action,
            rule_evaluations=evaluations,
            blocking_rules=blocking_rules,
        )
