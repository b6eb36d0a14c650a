"""French and English vocabulary used by the contract-type heuristic."""

import re

from contract_pipeline.detection.models import ContractType

# Title aliases, checked in this order against the opening of the document.
TYPE_ALIASES: dict[ContractType, tuple[str, ...]] = {
    ContractType.TERMS_OF_SERVICE: (
        "terms of service",
        "terms and conditions",
        "conditions générales",
        "conditions d'utilisation",
        "cgu",
        "cgv",
        "conditions générales de vente",
        "general terms",
    ),
    ContractType.FREELANCE: (
        "freelance",
        "independent contractor",
        "consultant",
        "prestation de services",
        "contrat de prestation",
        "master services agreement",
        "msa",
        "statement of work",
        "sow",
    ),
    ContractType.EMPLOYMENT: (
        "employment contract",
        "contrat de travail",
        "cdi",
        "cdd",
        "labor contract",
        "employment agreement",
        "job contract",
    ),
    ContractType.NDA: (
        "non-disclosure agreement",
        "nda",
        "confidentiality agreement",
        "accord de confidentialité",
        "confidentiality",
        "secrecy agreement",
    ),
    ContractType.QUOTE: (
        "quote",
        "estimate",
        "devis",
        "quotation",
        "proposal",
        "bid",
        "price quote",
    ),
    ContractType.PARTNERSHIP: (
        "partnership",
        "partenariat",
        "collaboration",
        "joint venture",
        "cooperation agreement",
        "strategic alliance",
        "memorandum of understanding",
        "mou",
    ),
    ContractType.ADMINISTRATIVE_FORM: (
        "cerfa",
        "formulaire administratif",
        "administrative form",
    ),
    ContractType.TABULAR_COMMERCIAL: (
        "grille tarifaire",
        "price list",
        "pricing",
        "tarif",
        "catalogue",
    ),
}

# Weighted discriminant terms; higher weight means more specific to the type.
DISCRIMINANT_KEYWORDS: dict[ContractType, dict[str, int]] = {
    ContractType.TERMS_OF_SERVICE: {
        "utilisateur": 3,
        "utilisateurs": 3,
        "service": 2,
        "services": 2,
        "plateforme": 3,
        "cookies": 3,
        "responsabilité limitée": 4,
        "compte": 2,
        "données personnelles": 3,
        "propriété intellectuelle": 2,
        "acceptation des conditions": 4,
        "user": 3,
        "users": 3,
        "platform": 3,
        "personal data": 3,
        "intellectual property": 2,
        "acceptance of terms": 4,
        "limited liability": 4,
        "account": 2,
    },
    ContractType.FREELANCE: {
        "prestations": 4,
        "prestation": 4,
        "mission": 3,
        "missions": 3,
        "facturation": 3,
        "indépendant": 3,
        "livrables": 3,
        "livrable": 3,
        "honoraires": 3,
        "taux journalier": 4,
        "freelance": 4,
        "consultant": 3,
        "sous-traitant": 3,
        "services": 2,
        "deliverables": 3,
        "invoice": 3,
        "invoicing": 3,
        "contractor": 4,
        "independent contractor": 5,
        "statement of work": 4,
        "sow": 4,
        "daily rate": 4,
    },
    ContractType.EMPLOYMENT: {
        "cdi": 5,
        "cdd": 5,
        "période d'essai": 5,
        "periode d'essai": 5,
        "salaire": 4,
        "congés payés": 5,
        "conges payes": 5,
        "hiérarchie": 3,
        "hierarchie": 3,
        "employeur": 4,
        "salarié": 4,
        "salarie": 4,
        "convention collective": 4,
        "temps de travail": 3,
        "horaires de travail": 3,
        "employment": 4,
        "employee": 4,
        "employer": 4,
        "salary": 4,
        "paid leave": 4,
        "probation period": 5,
        "trial period": 5,
        "collective agreement": 4,
        "working hours": 3,
    },
    ContractType.NDA: {
        "confidentiel": 5,
        "confidentialité": 5,
        "confidentialite": 5,
        "divulgation": 4,
        "receveur": 3,
        "émetteur": 3,
        "emetteur": 3,
        "durée de confidentialité": 5,
        "duree de confidentialite": 5,
        "informations protégées": 4,
        "informations protegees": 4,
        "secret": 3,
        "confidential": 5,
        "confidentiality": 5,
        "disclosure": 4,
        "non-disclosure": 5,
        "nda": 5,
        "recipient": 3,
        "discloser": 3,
        "protected information": 4,
        "secrecy": 3,
    },
    ContractType.QUOTE: {
        "devis": 5,
        "acceptation": 3,
        "validité": 4,
        "validite": 4,
        "prix ht": 4,
        "prix ttc": 4,
        "acompte": 4,
        "bon de commande": 4,
        "estimation": 3,
        "montant": 2,
        "quantité": 2,
        "quantite": 2,
        "quote": 5,
        "quotation": 5,
        "estimate": 4,
        "price quote": 5,
        "unit price": 3,
        "quantity": 2,
        "purchase order": 4,
        "deposit": 3,
        "validity": 4,
    },
    ContractType.PARTNERSHIP: {
        "partenariat": 5,
        "coopération": 4,
        "cooperation": 4,
        "joint marketing": 4,
        "exclusivité territoriale": 4,
        "exclusivite territoriale": 4,
        "sous-traitance": 3,
        "collaboration": 3,
        "partenaire": 4,
        "accord-cadre": 4,
        "partnership": 5,
        "partner": 4,
        "joint venture": 5,
        "strategic alliance": 5,
        "memorandum of understanding": 5,
        "mou": 5,
        "territorial exclusivity": 4,
        "subcontracting": 3,
    },
    ContractType.ADMINISTRATIVE_FORM: {
        "cerfa": 5,
        "formulaire": 4,
        "à remplir": 3,
        "case à cocher": 3,
        "cochez": 3,
        "administrative form": 4,
    },
    ContractType.TABULAR_COMMERCIAL: {
        "grille tarifaire": 5,
        "tarif": 4,
        "tarifs": 4,
        "prix unitaire": 3,
        "catalogue": 3,
        "price list": 5,
        "pricing": 4,
    },
    ContractType.OTHER: {},
}

_ARTICLE = r"article\s+\d+\s*[:-]\s*"

# Clause-header patterns; the structural score is the fraction matched.
STRUCTURAL_PATTERNS: dict[ContractType, tuple[re.Pattern[str], ...]] = {
    ContractType.TERMS_OF_SERVICE: (
        re.compile(_ARTICLE + r"utilisation", re.IGNORECASE),
        re.compile(_ARTICLE + r"compte", re.IGNORECASE),
        re.compile(_ARTICLE + r"données", re.IGNORECASE),
        re.compile(r"section\s+\d+\s*[:-]\s*acceptance", re.IGNORECASE),
    ),
    ContractType.FREELANCE: (
        re.compile(_ARTICLE + r"prestations", re.IGNORECASE),
        re.compile(_ARTICLE + r"facturation", re.IGNORECASE),
        re.compile(_ARTICLE + r"livrables", re.IGNORECASE),
        re.compile(r"clause\s+de\s+non[-\s]concurrence", re.IGNORECASE),
    ),
    ContractType.EMPLOYMENT: (
        re.compile(_ARTICLE + r"période\s+d'essai", re.IGNORECASE),
        re.compile(_ARTICLE + r"rémunération", re.IGNORECASE),
        re.compile(_ARTICLE + r"remuneration", re.IGNORECASE),
        re.compile(_ARTICLE + r"congés", re.IGNORECASE),
        re.compile(r"clause\s+de\s+non[-\s]concurrence", re.IGNORECASE),
    ),
    ContractType.NDA: (
        re.compile(_ARTICLE + r"confidentialité", re.IGNORECASE),
        re.compile(_ARTICLE + r"confidentialite", re.IGNORECASE),
        re.compile(_ARTICLE + r"divulgation", re.IGNORECASE),
        re.compile(r"durée\s+de\s+confidentialité", re.IGNORECASE),
        re.compile(r"duree\s+de\s+confidentialite", re.IGNORECASE),
    ),
    ContractType.QUOTE: (
        re.compile(r"n°\s*devis", re.IGNORECASE),
        re.compile(r"numéro\s+de\s+devis", re.IGNORECASE),
        re.compile(r"numero\s+de\s+devis", re.IGNORECASE),
        re.compile(r"quote\s+number", re.IGNORECASE),
        re.compile(r"validité\s+du\s+devis", re.IGNORECASE),
        re.compile(r"validite\s+du\s+devis", re.IGNORECASE),
    ),
    ContractType.PARTNERSHIP: (
        re.compile(_ARTICLE + r"objet\s+du\s+partenariat", re.IGNORECASE),
        re.compile(_ARTICLE + r"coopération", re.IGNORECASE),
        re.compile(_ARTICLE + r"cooperation", re.IGNORECASE),
        re.compile(r"exclusivité\s+territoriale", re.IGNORECASE),
        re.compile(r"exclusivite\s+territoriale", re.IGNORECASE),
    ),
    ContractType.ADMINISTRATIVE_FORM: (),
    ContractType.TABULAR_COMMERCIAL: (),
    ContractType.OTHER: (),
}

# Terms used to pick extra excerpt lines for the LLM detector.
HINT_KEYWORDS: dict[ContractType, tuple[str, ...]] = {
    ContractType.TERMS_OF_SERVICE: ("utilisateur", "service", "plateforme", "cookies", "user", "platform"),
    ContractType.FREELANCE: ("prestation", "mission", "facturation", "freelance", "contractor", "deliverable"),
    ContractType.EMPLOYMENT: ("cdi", "cdd", "salaire", "congés", "employment", "salary"),
    ContractType.NDA: ("confidentiel", "divulgation", "confidential", "disclosure", "nda"),
    ContractType.QUOTE: ("devis", "quote", "estimation", "prix", "price"),
    ContractType.PARTNERSHIP: ("partenariat", "coopération", "partnership", "collaboration"),
    ContractType.ADMINISTRATIVE_FORM: ("cerfa", "formulaire", "cochez", "signature"),
    ContractType.TABULAR_COMMERCIAL: ("tarif", "prix", "price", "catalogue"),
}

DEFAULT_HINT_KEYWORDS: tuple[str, ...] = ("contrat", "contract", "accord", "agreement")


def word_pattern(term: str) -> re.Pattern[str]:
    """Case-insensitive whole-word pattern for a term."""
    return re.compile(rf"(?<!\w){re.escape(term)}(?!\w)", re.IGNORECASE)
