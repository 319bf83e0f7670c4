import argparse
import asyncio
import json
import logging
import os

from copyreview import (
    CopyPipeline,
    CopyReviewError,
    PipelineConfig,
    SessionHandle,
    http_status,
)


SAMPLE_SUBJECT = "Quick question about your outbound process"
SAMPLE_BODY = """Hi Sarah,

I hope this email finds you well. My name is Tom and I work at Pipeline Labs,
a leading provider of sales automation software. We help companies like yours
increase revenue through our innovative platform.

Would you be available for a 30 minute call next week to discuss?

Best,
Tom"""


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Review and rewrite a cold email.")
    parser.add_argument("--subject", default=SAMPLE_SUBJECT)
    parser.add_argument("--body-file", help="Read the email body from this file")
    parser.add_argument("--model", help="Model hint, e.g. claude-sonnet-4.5 or openai/gpt-4o")
    parser.add_argument(
        "--mode",
        choices=("two-step", "combined"),
        default="two-step",
        help="Review then improve, or one combined analyze-and-improve call",
    )
    parser.add_argument("--json", action="store_true", help="Print result documents as JSON")
    return parser.parse_args()


# -----------------------
# Main demo runner
# -----------------------


async def main(args: argparse.Namespace) -> int:
    body = SAMPLE_BODY
    if args.body_file:
        with open(args.body_file, encoding="utf-8") as fh:
            body = fh.read()

    pipeline = CopyPipeline(PipelineConfig.from_env(load_dotenv_file=True))
    session = SessionHandle.new()

    try:
        if args.mode == "combined":
            print("\n--- Analyze and improve (one call) ---")
            combined = await pipeline.analyze_and_improve(
                args.subject, body, model_hint=args.model, session=session
            )
            if args.json:
                print(json.dumps(combined.to_json_dict(), indent=2))
                return 0
            print(f"score: {combined.overall_score}/100 "
                  f"(estimated after rewrite: {combined.estimated_improved_score()})")
            print("subject:", combined.improved_subject)
            print(combined.improved_body)
            for change in combined.changes:
                print(f"  - [{change.category}] {change.summary or change.reason}")
            return 0

        print("\n--- 1) Review ---")
        review = await pipeline.review(args.subject, body, model_hint=args.model, session=session)
        if args.json:
            print(json.dumps(review.to_json_dict(), indent=2))
        else:
            print(f"score: {review.overall_score}/100{' (fallback)' if review.degraded else ''}")
            for section in review.sections:
                print(f"  * {section.title}: {section.content[:120]}")

        print("\n--- 2) Improve ---")
        improved = await pipeline.improve(
            args.subject, body, review, model_hint=args.model, session=session
        )
        if args.json:
            print(json.dumps(improved.to_json_dict(), indent=2))
            return 0
        print("subject:", improved.improved_subject)
        print(improved.improved_body)
        for tip in improved.further_tips:
            print("  tip:", tip)
        return 0
    except CopyReviewError as e:
        print(f"\nfailed ({e.kind.value}, http {http_status(e)}): {e}")
        return 1
    finally:
        await pipeline.aclose()


if __name__ == "__main__":
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    raise SystemExit(asyncio.run(main(parse_args())))
