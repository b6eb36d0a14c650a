"""LLM contract analysis with bounded validation/repair."""

import json
import time

from contract_pipeline.analysis.exceptions import AnalysisInvalidError, AnalysisValidationError
from contract_pipeline.analysis.models import AnalysisResult
from contract_pipeline.analysis.validator import validate_and_build
from contract_pipeline.config.settings import Settings
from contract_pipeline.detection.models import ContractType
from contract_pipeline.llm.client_base import BaseLlmClient
from contract_pipeline.llm.prompt_loader import load_prompt
from contract_pipeline.logging.logger import Log

MAX_REPAIR_ATTEMPTS = 2

CLAUSE_TYPES: dict[ContractType, tuple[str, ...]] = {
    ContractType.TERMS_OF_SERVICE: (
        "Objet du service",
        "Acceptation des conditions",
        "Données personnelles & RGPD",
        "Propriété intellectuelle",
        "Responsabilité limitée",
        "Résiliation & suspension",
        "Modification des CGU",
        "Droit applicable & juridiction",
    ),
    ContractType.FREELANCE: (
        "Objet de la mission",
        "Durée & renouvellement",
        "Rémunération & facturation",
        "Livrables attendus",
        "Propriété intellectuelle",
        "Confidentialité",
        "Résiliation",
        "Non-concurrence",
    ),
    ContractType.EMPLOYMENT: (
        "Poste & fonction",
        "Durée du contrat (CDI/CDD)",
        "Période d'essai",
        "Rémunération & avantages",
        "Temps de travail & horaires",
        "Congés payés",
        "Clause de mobilité",
        "Non-concurrence",
        "Résiliation & préavis",
    ),
    ContractType.NDA: (
        "Définition des informations confidentielles",
        "Obligations du receveur",
        "Exceptions à la confidentialité",
        "Durée de confidentialité",
        "Restitution des informations",
        "Sanctions en cas de violation",
        "Droit applicable",
    ),
    ContractType.QUOTE: (
        "Désignation des prestations",
        "Prix & modalités de paiement",
        "Validité du devis",
        "Conditions d'acceptation",
        "Délais de réalisation",
        "Conditions d'annulation",
        "Garanties",
    ),
    ContractType.PARTNERSHIP: (
        "Objet du partenariat",
        "Durée & renouvellement",
        "Obligations de chaque partie",
        "Exclusivité territoriale",
        "Propriété intellectuelle",
        "Confidentialité",
        "Résiliation",
        "Responsabilités",
    ),
    ContractType.ADMINISTRATIVE_FORM: (
        "Objet du formulaire",
        "Identité du déclarant",
        "Pièces justificatives",
        "Engagements & signature",
    ),
    ContractType.TABULAR_COMMERCIAL: (
        "Désignation des produits",
        "Prix unitaires & remises",
        "Conditions de paiement",
        "Validité des tarifs",
        "Conditions de livraison",
    ),
    ContractType.OTHER: (
        "Objet du contrat",
        "Parties contractantes",
        "Durée",
        "Obligations principales",
        "Résiliation",
        "Droit applicable",
    ),
}


def _parse_json(raw: str) -> object:
    cleaned = raw.strip()
    if cleaned.startswith("```"):
        lines = cleaned.splitlines()
        if lines and lines[0].startswith("```"):
            lines = lines[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        cleaned = "\n".join(lines)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise AnalysisValidationError([f"invalid JSON: {exc}"]) from exc


class ContractAnalyzer:
    """Runs the paid LLM analysis of a clean contract text.

    A response that fails validation is sent back with its errors for up to
    ``max_repairs`` corrections before AnalysisInvalidError is raised.
    Provider errors (LlmError and subclasses) propagate unchanged.
    """

    def __init__(
        self,
        *,
        client: BaseLlmClient,
        model: str,
        temperature: float = 0.3,
        max_repairs: int = MAX_REPAIR_ATTEMPTS,
    ) -> None:
        self._client = client
        self._model = model
        self._temperature = temperature
        self._max_repairs = max_repairs
        self._system_prompt = load_prompt("analysis_system")
        self._user_template = load_prompt("analysis_user")
        self._repair_template = load_prompt("analysis_repair")

    def analyze(self, clean_text: str, contract_type: ContractType) -> AnalysisResult:
        started = time.perf_counter()
        raw = self._call(self._build_prompt(clean_text, contract_type))

        errors: list[str] = []
        attempts = 0
        while True:
            attempts += 1
            try:
                result = validate_and_build(_parse_json(raw))
            except AnalysisValidationError as exc:
                errors = exc.errors
            else:
                Log.info(
                    f"Analysis complete: type={contract_type.value} "
                    f"risk={result.risk_score} red_flags={len(result.red_flags)} "
                    f"attempts={attempts} ({(time.perf_counter() - started) * 1000:.0f}ms)"
                )
                return result

            if attempts > self._max_repairs:
                break
            Log.warning(
                f"Analysis output invalid (attempt {attempts}), requesting repair: "
                f"{len(errors)} error(s)"
            )
            raw = self._call(self._build_repair_prompt(raw, errors))

        Log.error(f"Analysis output still invalid after {attempts} attempt(s)")
        raise AnalysisInvalidError(errors, attempts=attempts)

    def _build_prompt(self, clean_text: str, contract_type: ContractType) -> str:
        clause_types = CLAUSE_TYPES.get(contract_type, CLAUSE_TYPES[ContractType.OTHER])
        return self._user_template.format(
            contract_type=contract_type.value,
            clean_text=clean_text,
            clause_types="\n".join(f"   - {clause}" for clause in clause_types),
        )

    def _build_repair_prompt(self, invalid_output: str, errors: list[str]) -> str:
        return self._repair_template.format(
            validation_errors="\n".join(f"{i}. {error}" for i, error in enumerate(errors, 1)),
            invalid_output=invalid_output,
        )

    def _call(self, user_prompt: str) -> str:
        return self._client.complete(
            model=self._model,
            system_prompt=self._system_prompt,
            user_prompt=user_prompt,
            temperature=self._temperature,
        )


def build_analyzer(settings: Settings, client: BaseLlmClient) -> ContractAnalyzer:
    return ContractAnalyzer(
        client=client,
        model=settings.llm_model_name,
        temperature=settings.llm_temperature,
    )
