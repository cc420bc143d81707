#!/usr/bin/env python
"""Script to generate one image from the command line and print its URLs."""
from __future__ import annotations

import argparse
import asyncio
import mimetypes
import sys
from pathlib import Path

from imagegen.models import GenerationRequest, ModelSelector, ReferenceImage
from imagegen.services.errors import GenerationError
from imagegen.services.generation import get_generation_service


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate an image and store it in Cloud Storage")
    parser.add_argument("prompt")
    parser.add_argument("--uid", default="cli")
    parser.add_argument("--model", default=ModelSelector.STABLE_DIFFUSION_XL.value,
                        choices=[m.value for m in ModelSelector])
    parser.add_argument("--reference", type=Path, help="Optional reference image for image-to-image")
    parser.add_argument("--api_key", help="Your own provider key; platform keys are used when omitted")
    args = parser.parse_args()

    reference = None
    if args.reference:
        content_type = mimetypes.guess_type(args.reference.name)[0] or "application/octet-stream"
        reference = ReferenceImage(
            data=args.reference.read_bytes(),
            filename=args.reference.name,
            content_type=content_type,
        )

    request = GenerationRequest(
        prompt=args.prompt,
        uid=args.uid,
        model=args.model,
        use_credits=args.api_key is None,
        openai_api_key=args.api_key,
        fireworks_api_key=args.api_key,
        stability_api_key=args.api_key,
        reference_image=reference,
    )
    try:
        result = asyncio.run(get_generation_service().generate(request))
    except GenerationError as exc:
        sys.exit(f"Generation failed: {exc}")

    print("Generated image:")
    print(result.model_dump_json(indent=2, by_alias=True))


if __name__ == "__main__":
    main()
