#!/usr/bin/env python3
"""
Dark Pattern Detector Evaluation Harness
Measures per-detector precision and recall over a labelled HTML corpus
"""

import json
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

import click
import yaml
from tabulate import tabulate

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dpd import __version__
from dpd.core.document import load_document_file
from dpd.core.engine import ScanEngine
from dpd.utils.logger import setup_logger


def ratio(numerator: int, denominator: int) -> float:
    return numerator / denominator if denominator > 0 else 0


def f1(precision: float, recall: float) -> float:
    return 2 * (precision * recall) / (precision + recall) if (precision + recall) > 0 else 0


class EvaluationHarness:
    """Evaluation harness for measuring detection accuracy."""

    def __init__(self, config_file: str = "corpus/expected_results.yaml", verbosity: int = 1):
        self.config_file = Path(config_file)
        self.config = None
        self.logger = setup_logger(verbosity=verbosity, logger_name="evaluation")

    def load_config(self):
        """Load expected results configuration."""
        with open(self.config_file, "r", encoding="utf-8") as f:
            self.config = yaml.safe_load(f)
        self.logger.info(f"Loaded evaluation config from {self.config_file}")

    @property
    def corpus_dir(self) -> Path:
        return self.config_file.parent

    def check_corpus(self) -> bool:
        """Check that every labelled page exists and names known detectors."""
        if not self.config:
            self.load_config()

        known = set(ScanEngine().selected)
        healthy = True
        for case in self.config.get("cases", []):
            page = self.corpus_dir / case["file"]
            if not page.exists():
                self.logger.error(f"✗ Missing corpus page: {page}")
                healthy = False
            unknown = set(case.get("expected", [])) - known
            if unknown:
                self.logger.error(f"✗ {case['file']} expects unknown detectors: {sorted(unknown)}")
                healthy = False
        return healthy

    def run_evaluation(self, detectors: Optional[List[str]] = None) -> Dict:
        """Scan every corpus page and compare detector hits with the labels."""
        if not self.config:
            self.load_config()

        self.logger.info("Starting detection evaluation...")
        start_time = time.time()

        engine = ScanEngine(detectors=detectors, logger=self.logger)
        detector_ids = list(engine.selected)

        cases = []
        per_detector = {
            detector_id: {"true_positives": 0, "false_positives": 0,
                          "true_negatives": 0, "false_negatives": 0}
            for detector_id in detector_ids
        }

        for case in self.config.get("cases", []):
            result = self.evaluate_case(engine, case, detector_ids)
            cases.append(result)
            for detector_id, outcome in result["outcomes"].items():
                per_detector[detector_id][outcome] += 1

        metrics = self.calculate_metrics(per_detector)

        return {
            "metadata": {
                "timestamp": datetime.now().isoformat(),
                "evaluation_time_seconds": time.time() - start_time,
                "detector_version": __version__,
                "config_file": str(self.config_file),
                "detectors_tested": detectors or "all",
            },
            "cases": cases,
            "metrics": metrics,
            "accuracy_analysis": self.analyze_accuracy(metrics),
        }

    def evaluate_case(self, engine: ScanEngine, case: Dict, detector_ids: List[str]) -> Dict:
        page = self.corpus_dir / case["file"]
        expected = set(case.get("expected", []))
        self.logger.info(f"Testing {case['file']}")

        report = engine.run(load_document_file(page))
        hits = report.stats["findings_by_detector"]

        outcomes = {}
        for detector_id in detector_ids:
            fired = hits.get(detector_id, 0) > 0
            wanted = detector_id in expected
            if wanted and fired:
                outcomes[detector_id] = "true_positives"
            elif wanted:
                outcomes[detector_id] = "false_negatives"
            elif fired:
                outcomes[detector_id] = "false_positives"
            else:
                outcomes[detector_id] = "true_negatives"

        return {
            "file": case["file"],
            "expected": sorted(expected),
            "detected": sorted(d for d in detector_ids if hits.get(d, 0) > 0),
            "score": report.score,
            "tier": report.tier,
            "errors": report.errors,
            "outcomes": outcomes,
            "test_passed": all(o in ("true_positives", "true_negatives") for o in outcomes.values()),
            "notes": case.get("notes", ""),
        }

    def calculate_metrics(self, per_detector: Dict[str, Dict[str, int]]) -> Dict:
        """Calculate precision, recall and F1, overall and per detector."""
        totals = {key: sum(counts[key] for counts in per_detector.values())
                  for key in ("true_positives", "false_positives", "true_negatives", "false_negatives")}

        tp, fp = totals["true_positives"], totals["false_positives"]
        tn, fn = totals["true_negatives"], totals["false_negatives"]
        precision = ratio(tp, tp + fp)
        recall = ratio(tp, tp + fn)

        by_detector = {}
        for detector_id, counts in per_detector.items():
            d_precision = ratio(counts["true_positives"], counts["true_positives"] + counts["false_positives"])
            d_recall = ratio(counts["true_positives"], counts["true_positives"] + counts["false_negatives"])
            by_detector[detector_id] = {
                "precision": round(d_precision, 3),
                "recall": round(d_recall, 3),
                "f1_score": round(f1(d_precision, d_recall), 3),
                **counts,
            }

        return {
            "overall": {
                "precision": round(precision, 3),
                "recall": round(recall, 3),
                "f1_score": round(f1(precision, recall), 3),
                "accuracy": round(ratio(tp + tn, tp + fp + tn + fn), 3),
                **totals,
            },
            "by_detector": by_detector,
        }

    def analyze_accuracy(self, metrics: Dict) -> Dict:
        """Compare overall metrics with the configured targets."""
        overall = metrics["overall"]
        targets = self.config.get("test_config", {}).get("accuracy_targets", {})
        precision_target = targets.get("overall_precision", 0.9)
        recall_target = targets.get("overall_recall", 0.85)

        improvement_areas = []
        if overall["precision"] < precision_target:
            improvement_areas.append("Reduce false positive rate")
        if overall["recall"] < recall_target:
            improvement_areas.append("Improve detection sensitivity")
        for detector_id, detector_metrics in metrics["by_detector"].items():
            if detector_metrics["false_positives"]:
                improvement_areas.append(f"Tighten {detector_id} patterns")
            if detector_metrics["false_negatives"]:
                improvement_areas.append(f"Extend {detector_id} patterns")

        return {
            "target_achievement": {
                "precision": {"target": precision_target, "actual": overall["precision"],
                              "achieved": overall["precision"] >= precision_target},
                "recall": {"target": recall_target, "actual": overall["recall"],
                           "achieved": overall["recall"] >= recall_target},
            },
            "improvement_areas": improvement_areas,
        }

    def save_report(self, report: Dict, output_file: str):
        """Save evaluation report to file."""
        output_path = Path(output_file)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(report, f, indent=2, default=str)

        self.logger.info(f"Evaluation report saved to {output_path}")

    def print_summary(self, report: Dict):
        """Print evaluation summary to console."""
        metrics = report["metrics"]["overall"]
        targets = report["accuracy_analysis"]["target_achievement"]

        print("\n" + "=" * 70)
        print("DARK PATTERN DETECTION EVALUATION SUMMARY")
        print("=" * 70)

        overall_data = [
            ["Precision", f"{metrics['precision']:.3f}", f"≥ {targets['precision']['target']:.3f}"],
            ["Recall", f"{metrics['recall']:.3f}", f"≥ {targets['recall']['target']:.3f}"],
            ["F1 Score", f"{metrics['f1_score']:.3f}", ""],
            ["Accuracy", f"{metrics['accuracy']:.3f}", ""],
        ]
        print("\nOverall Performance:")
        print(tabulate(overall_data, headers=["Metric", "Actual", "Target"], tablefmt="grid"))

        detector_data = [
            [detector_id, m["true_positives"], m["false_positives"], m["false_negatives"],
             f"{m['precision']:.3f}", f"{m['recall']:.3f}"]
            for detector_id, m in report["metrics"]["by_detector"].items()
        ]
        print("\nBy Detector:")
        print(tabulate(detector_data, headers=["Detector", "TP", "FP", "FN", "Precision", "Recall"],
                       tablefmt="grid"))

        failed = [case for case in report["cases"] if not case["test_passed"]]
        if failed:
            print("\nMismatched pages:")
            for case in failed:
                print(f"- {case['file']}: expected {case['expected']}, detected {case['detected']}")
                if case["notes"]:
                    print(f"  {case['notes']}")

        print("\n" + "=" * 70)


@click.command()
@click.option("--config", default="corpus/expected_results.yaml",
              help="Path to expected results configuration file")
@click.option("--output", default=None,
              help="Output file for evaluation report (default: reports/evaluation-YYYYMMDD_HHMMSS.json)")
@click.option("--detectors", default=None,
              help="Comma-separated list of detectors to test (default: all)")
@click.option("--check-corpus", is_flag=True,
              help="Only check that the labelled corpus is complete")
@click.option("--verbose", "-v", default=1, type=int,
              help="Verbosity level: 0=minimal, 1=standard, 2=debug")
def main(config, output, detectors, check_corpus, verbose):
    """Dark Pattern Detector Evaluation Harness."""

    if not output:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        output = f"reports/evaluation-{timestamp}.json"

    detector_list = None
    if detectors:
        detector_list = [d.strip() for d in detectors.split(",") if d.strip()]

    harness = EvaluationHarness(config, verbosity=verbose)
    harness.load_config()

    if check_corpus:
        if harness.check_corpus():
            click.echo("✓ Corpus is complete and ready for evaluation")
            sys.exit(0)
        click.echo("✗ Corpus is incomplete")
        sys.exit(1)

    report = harness.run_evaluation(detector_list)
    harness.save_report(report, output)
    harness.print_summary(report)

    achievement = report["accuracy_analysis"]["target_achievement"]
    if achievement["precision"]["achieved"] and achievement["recall"]["achieved"]:
        click.echo("\n🎉 All accuracy targets achieved!")
        sys.exit(0)
    click.echo("\n⚠️  Some accuracy targets not met. See mismatched pages above.")
    sys.exit(1)


if __name__ == "__main__":
    main()
