from contract_pipeline.detection.heuristic import HeuristicTypeDetector
from contract_pipeline.detection.models import MAX_EVIDENCE, ContractType

EMPLOYMENT_TEXT = (
    "Le salarié percevra un salaire mensuel fixé par l'employeur. "
    "La période d'essai est de deux mois. "
    "Les congés payés sont acquis chaque mois travaillé."
)


class TestTitleDetection:
    def test_title_alias_short_circuits(self) -> None:
        result = HeuristicTypeDetector().detect("CONTRAT DE TRAVAIL\nEntre les soussignés")
        assert result.type == ContractType.EMPLOYMENT
        assert result.confidence == 0.95

    def test_alias_outside_opening_window_is_ignored(self) -> None:
        text = "x" * 600 + " contrat de travail"
        assert HeuristicTypeDetector.detect_title(text) is None

    def test_aliases_match_whole_words_only(self) -> None:
        assert HeuristicTypeDetector.detect_title("Agenda de la réunion fondamentale") is None

    def test_cerfa_is_administrative_form(self) -> None:
        assert (
            HeuristicTypeDetector.detect_title("Formulaire CERFA n°12345")
            == ContractType.ADMINISTRATIVE_FORM
        )


class TestKeywordScoring:
    def test_keywords_pick_the_dominant_type(self) -> None:
        result = HeuristicTypeDetector().detect(EMPLOYMENT_TEXT)
        assert result.type == ContractType.EMPLOYMENT
        assert result.confidence == 1.0
        assert 0 < len(result.evidence) <= MAX_EVIDENCE
        assert any("essai" in excerpt for excerpt in result.evidence)

    def test_scores_are_renormalized(self) -> None:
        text = (
            "La mission donne lieu à facturation des livrables. "
            "Le salarié reçoit un salaire."
        )
        result = HeuristicTypeDetector().detect(text)
        assert abs(sum(result.scores.values()) - 1.0) < 1e-9
        assert result.confidence < 1.0

    def test_no_signal_is_other(self) -> None:
        result = HeuristicTypeDetector().detect("Lorem ipsum dolor sit amet")
        assert result.type == ContractType.OTHER
        assert result.confidence == 0.0
        assert result.evidence == []

    def test_structure_score(self) -> None:
        text = "Article 1 : Prestations\nArticle 2 : Facturation\nArticle 3 - Livrables"
        scores = HeuristicTypeDetector.score_structure(text)
        assert scores[ContractType.FREELANCE] == 0.75
        assert scores[ContractType.OTHER] == 0.0

    def test_evidence_is_trimmed(self) -> None:
        text = "a" * 200 + " salaire " + "b" * 200
        evidence = HeuristicTypeDetector.extract_evidence(text, ContractType.EMPLOYMENT)
        assert evidence
        assert all(len(excerpt) <= 150 for excerpt in evidence)
