import io

import pytest
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

LONG_FOOTER = "Confidential - Alpha Consulting SARL"

LONG_PAGES = [
    [
        "CONTRAT DE PRESTATION DE SERVICES",
        "Entre la societe Alpha Consulting et la societe Beta Industries,",
        "il a ete convenu ce qui suit concernant la mission de conseil.",
        "Le prestataire realise les prestations decrites en annexe.",
    ],
    [
        "ARTICLE 2 - REMUNERATION",
        "Le client verse au prestataire des honoraires mensuels fixes,",
        "payables a trente jours a compter de la reception de la facture.",
        "Tout retard de paiement entraine des penalites de retard.",
    ],
    [
        "ARTICLE 3 - RESILIATION",
        "Chaque partie peut mettre fin au contrat par lettre recommandee",
        "avec un preavis de deux mois adresse a l'autre partie.",
        "Les livrables deja realises restent acquis au client.",
    ],
]


def _pdf(pages: list[list[str]], footer: str | None = None, **canvas_kwargs: object) -> bytes:
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=A4, **canvas_kwargs)
    for lines in pages:
        y = 780
        for line in lines:
            c.drawString(72, y, line)
            y -= 18
        if footer is not None:
            c.drawString(72, 40, footer)
        c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture()
def simple_pdf_bytes() -> bytes:
    """Single page, roughly 100 characters of text."""
    return _pdf(
        [
            [
                "Accord de confidentialite entre Alpha et Beta",
                "Les informations echangees restent secretes pendant cinq ans.",
            ]
        ]
    )


@pytest.fixture()
def long_pdf_bytes() -> bytes:
    """Three pages of distinct content sharing a footer line."""
    return _pdf(LONG_PAGES, footer=LONG_FOOTER)


@pytest.fixture()
def blank_pdf_bytes() -> bytes:
    return _pdf([[]])


@pytest.fixture()
def x_only_pdf_bytes() -> bytes:
    return _pdf([["X"]])


@pytest.fixture()
def encrypted_pdf_bytes() -> bytes:
    """Single page protected with the user password ``secret``."""
    return _pdf(
        [["Contrat protege par mot de passe", "Contenu confidentiel de la mission de conseil."]],
        encrypt="secret",
    )


@pytest.fixture()
def form_pdf_bytes() -> bytes:
    """A page of short labelled fields and checkboxes."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    labels = [
        "Nom :",
        "Prénom :",
        "Adresse :",
        "Code postal :",
        "Ville :",
        "Téléphone :",
        "Email :",
        "Date de naissance :",
        "Signature :",
        "Profession :",
    ]
    y = 780
    for label in labels:
        c.drawString(72, y, label)
        c.drawString(300, y, "[ ]")
        y -= 24
    c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture()
def many_pages_pdf_bytes() -> bytes:
    """Forty dense pages, numbered in their first line."""
    body = [f"Article {n} - Le prestataire execute la mission avec diligence et loyaute." for n in range(1, 36)]
    return _pdf([[f"PAGE {page} DU CONTRAT", *body] for page in range(1, 41)], footer=LONG_FOOTER)
