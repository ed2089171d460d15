from __future__ import annotations

import argparse
import asyncio
import json
import mimetypes
from pathlib import Path

from careerdeck.ai.factory import get_ai_client
from careerdeck.services.analysis_requester import analyze_resume
from careerdeck.services.input_normalizer import apply_upload, normalize_upload
from careerdeck.services.metadata_extractor import extract_profile_metadata, merge_profile_metadata
from careerdeck.schemas.career import UserInput


async def _run(args: argparse.Namespace) -> dict:
    client = get_ai_client()
    path = Path(args.file)
    content_type, _ = mimetypes.guess_type(path.name)
    upload = await normalize_upload(
        filename=path.name,
        content_type=content_type,
        content=path.read_bytes(),
    )
    user_input = apply_upload(
        UserInput(
            city=args.city,
            experience_level=args.experience_level,
            years_experience=args.years,
            mode=args.mode,
            more_roles=args.more_roles,
        ),
        upload,
    )
    if upload.truncated:
        print(f"note: resume text truncated to {len(upload.text)} characters")
    if args.autofill and upload.should_autofill:
        metadata = await extract_profile_metadata(upload.text, client)
        user_input = merge_profile_metadata(user_input, metadata)

    analysis = await analyze_resume(user_input, client)
    return analysis.model_dump(mode="json")


def main() -> None:
    parser = argparse.ArgumentParser(description="Run a resume through the career analysis pipeline.")
    parser.add_argument("file", help="Resume file (.txt, .pdf, .jpg, .jpeg, .png, .webp)")
    parser.add_argument("--city", default="", help="Target city; defaults to India (General)")
    parser.add_argument("--experience-level", default="fresher")
    parser.add_argument("--years", default="", help="Years of experience")
    parser.add_argument("--mode", choices=["fast", "search", "deep"], default="fast")
    parser.add_argument("--more-roles", action="store_true", help="Ask for 8-12 roles instead of 5-7.")
    parser.add_argument(
        "--autofill",
        action="store_true",
        help="Infer city and experience from the resume before analysing.",
    )
    parser.add_argument("--out", default="", help="Write the JSON result here instead of stdout.")
    args = parser.parse_args()

    result = asyncio.run(_run(args))
    rendered = json.dumps(result, ensure_ascii=False, indent=2)
    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(rendered + "\n", encoding="utf-8")
    else:
        print(rendered)


if __name__ == "__main__":
    main()
