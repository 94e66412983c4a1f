# WORKFLOW: Policy evaluation of an HS code against a jurisdiction's reference corpus.
# Used by: Jurisdiction adapters
# Evaluation steps:
# 1. Direct hit - Code is in the HS code index: allowed iff policy is "Free"
# 2. Chapter fallback - Entries sharing the 4- or 2-digit prefix: allowed iff any is free
# 3. Unknown code - exists=False with a generated (or templated) reason
#
# Steps 1-2 are pure functions of the corpus. Step 3 calls the explainer, which
# degrades to a fixed template when the provider is unavailable.

from typing import Optional
import logging

from api.schemas.response import ComplianceResult
from corpus.models import ReferenceCorpus
from services.explainer import ExplainerService, get_explainer

logger = logging.getLogger(__name__)

FREE_POLICY = "Free"
DEFAULT_RESTRICTED_POLICY = "Restricted"


class PolicyEvaluator:
    """Determines allowed/disallowed status and policy text for an HS code."""

    def __init__(self, explainer: Optional[ExplainerService] = None):
        self._explainer = explainer

    def evaluate(self, hs_code: str, corpus: ReferenceCorpus) -> ComplianceResult:
        """
        Evaluate an HS code in one jurisdiction.

        Args:
            hs_code: HS code to evaluate
            corpus: Reference corpus of the jurisdiction

        Returns:
            ComplianceResult
        """
        entry = corpus.get_entry(hs_code)
        if entry is not None:
            logger.info(f"[{corpus.jurisdiction}] HS {hs_code}: direct hit, policy '{entry.policy}'")
            return ComplianceResult(
                exists=True,
                allowed=entry.is_free,
                policy=entry.policy,
                description=entry.description,
            )

        chapter_result = self.evaluate_chapter(hs_code, corpus)
        if chapter_result is not None:
            return chapter_result

        logger.info(f"[{corpus.jurisdiction}] HS {hs_code}: unknown code")
        return ComplianceResult(
            exists=False,
            allowed=False,
            reason=self.explain_unknown_code(hs_code, corpus.jurisdiction),
        )

    def evaluate_chapter(self, hs_code: str, corpus: ReferenceCorpus) -> Optional[ComplianceResult]:
        """Aggregate the policies of entries sharing the code's 4- or 2-digit chapter."""
        if not hs_code or len(hs_code) < 4:
            return None

        chapter = hs_code[:4]
        matches = corpus.codes_with_prefix(chapter, hs_code[:2])
        if not matches:
            return None

        if any(entry.is_free for _, entry in matches):
            logger.info(f"[{corpus.jurisdiction}] HS {hs_code}: chapter {chapter} has free categories")
            return ComplianceResult(
                exists=True,
                allowed=True,
                policy=FREE_POLICY,
                description=f"Falls under chapter {chapter}, which has free categories",
            )

        first_code, first_entry = matches[0]
        logger.info(f"[{corpus.jurisdiction}] HS {hs_code}: chapter {chapter} has no free categories "
                    f"(policy taken from {first_code})")
        return ComplianceResult(
            exists=True,
            allowed=False,
            policy=first_entry.policy or DEFAULT_RESTRICTED_POLICY,
            description=f"Falls under chapter {chapter}, which has no free categories",
        )

    def explain_unknown_code(self, hs_code: str, jurisdiction: str) -> str:
        prompt = (
            f"Given HS code {hs_code} that wasn't found in the {jurisdiction} compliance database, "
            f"provide a reason why this code might not be recognized for import/export in {jurisdiction}. "
            f"Limit your response to one short paragraph."
        )
        fallback = (
            f"The HS Code {hs_code} was not found in the {jurisdiction} compliance regulations. "
            f"Please verify the code and try again."
        )
        return self._get_explainer().explain(prompt, fallback)

    def _get_explainer(self) -> ExplainerService:
        if self._explainer is None:
            self._explainer = get_explainer()
        return self._explainer
