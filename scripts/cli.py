"""
CLI to analyze a still image -> JSON (and optionally an annotated copy).
"""
from __future__ import annotations
import argparse, json, logging
import cv2
from core.config import Settings
from core.detector import analyze_frame
from core.visual import draw_detections

def main(argv=None):
    p = argparse.ArgumentParser()
    p.add_argument("--image", required=True, help="Path to input image")
    p.add_argument("--out", default=None, help="Optional path for the annotated image")
    p.add_argument("--confidence", type=float, default=None, help="Minimum detector confidence")
    args = p.parse_args(argv)

    settings = Settings()
    logging.basicConfig(level=settings.LOG_LEVEL)
    frame = cv2.imread(args.image)
    if frame is None:
        raise SystemExit(f"Could not read image: {args.image}")

    conf = settings.CONFIDENCE_THRESHOLD if args.confidence is None else args.confidence
    faces = analyze_frame(frame, settings, conf)
    result = {
        "image": args.image,
        "size": [frame.shape[1], frame.shape[0]],
        "faces": [f.model_dump() for f in faces],
    }
    print(json.dumps(result, indent=2, ensure_ascii=False))

    if args.out:
        cv2.imwrite(args.out, draw_detections(frame, faces))
        print(f"✅ Annotated image written to {args.out}")
    return result

if __name__ == "__main__":
    main()
