#!/usr/bin/env python3
"""
Packet Pipeline - Example Usage
===============================

Runs the intake-to-packet flow from the command line on plain text files:
reconcile an extraction record (JSON) into form data, then generate the
cover letter from evidence text files.

Usage:
    python examples/packet_pipeline_example.py vawa --intake record.json evidence1.txt evidence2.txt

Requirements:
    - Optional: AI_API_KEY environment variable (narrative drafting and AI classification).
      Without it, classification uses keyword heuristics and only case types
      without a narrative section (i-130-adjustment) can be generated.
"""

import sys
import json
import asyncio
import argparse
import logging
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from casepacket.errors import PacketError
from casepacket.services.ai_service import AIClient, DocumentClassifier, NarrativeService
from casepacket.services.evidence_reader import ExtractedEvidence
from casepacket.services.packet_pipeline import CATALOG, GenerationWorkflow

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def load_evidence(paths):
    evidence = []
    for path in paths:
        path = Path(path)
        if not path.exists():
            logger.error(f"File not found: {path}")
            continue
        evidence.append(ExtractedEvidence(path.name, path.read_text(encoding='utf-8')))
    return evidence


async def run(case_type: str, intake_path: str = None, evidence_paths=(), output_path: str = None):
    client = AIClient()
    workflow = GenerationWorkflow(
        case_type,
        classifier=DocumentClassifier(client),
        narrative_service=NarrativeService(client),
    )

    if intake_path:
        with open(intake_path) as f:
            record = json.load(f)
        reconciliation = workflow.apply_extraction(record)
        print("\n" + "-" * 40)
        print("INTAKE")
        print("-" * 40)
        print(reconciliation.summary())
        for question_id, value in workflow.store.snapshot().items():
            print(f"  {question_id:28} {value}")

    evidence = load_evidence(evidence_paths)
    try:
        result = await workflow.generate(evidence)
    except PacketError as e:
        print(f"\nGeneration failed ({type(e).__name__}): {e.message}")
        return None

    print("\n" + "=" * 60)
    print(f"{workflow.case.title.upper()}")
    print("=" * 60)
    for entry in result.history:
        print(f"  [{entry.state.value:22}] {entry.message}")

    print("\nEvidence by tab:")
    for tab, documents in result.buckets.items():
        print(f"  Tab {tab}: {len(documents)} document(s)")

    if result.verdict.has_minimum:
        print("\n✓ Minimum required documents present")
    else:
        print("\n✗ Missing documents:")
        for item in result.verdict.missing:
            print(f"  - {item}")

    if output_path:
        Path(output_path).write_text(result.document, encoding='utf-8')
        logger.info(f"Document saved to: {output_path}")
    else:
        print("\n" + result.document)

    return result


def show_case_types():
    print("\nSupported case types:")
    for case_type in CATALOG.case_types:
        case = CATALOG.get(case_type)
        print(f"  {case_type.value:22} {case.title} (tabs: {', '.join(case.tab_labels)})")


def main():
    parser = argparse.ArgumentParser(
        description='Immigration Packet Pipeline',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Generate an I-130 packet from an intake record and evidence text
    python packet_pipeline_example.py i-130-adjustment --intake intake.json passport.txt

    # Save the cover letter instead of printing it
    python packet_pipeline_example.py vawa --intake intake.json decl.txt -o letter.txt

    # List supported case types
    python packet_pipeline_example.py --case-types
        """
    )
    parser.add_argument('case_type', nargs='?', help='Case type, e.g. vawa')
    parser.add_argument('evidence', nargs='*', help='Evidence text files')
    parser.add_argument('--intake', help='Path to an extraction record (JSON object)')
    parser.add_argument('-o', '--output', help='Path to save the generated document')
    parser.add_argument('--case-types', action='store_true', help='List case types and exit')

    args = parser.parse_args()

    if args.case_types:
        show_case_types()
        return

    if not args.case_type:
        parser.print_help()
        print("\nError: Please provide a case type or use --case-types")
        sys.exit(1)

    asyncio.run(run(args.case_type, args.intake, args.evidence, args.output))


if __name__ == '__main__':
    main()
