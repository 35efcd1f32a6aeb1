# run.py
import argparse
import json
from datetime import datetime, timezone
from pathlib import Path

from revparty.assessments.tree import compute_decision_tree
from revparty.orchestrator.pipeline import RefinementPipeline, refine_or_fallback
from revparty.utils.config import load_config
from revparty.utils.llm import LLMClient
from revparty.utils.logger import get_logger
from revparty.utils.schemas import AssessmentAnswer, AssessmentConfig, AssessmentQuestion


def _read_json(path: str):
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _write_json(path: Path, data) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, default=str)


def _pipeline(config, run_id):
    logger = get_logger("revparty", logs_dir=config["paths"]["logs_dir"], run_id=run_id)
    llm = LLMClient.from_config(config["llm"])
    llm.logger = logger
    return RefinementPipeline(llm, config=config, logger=logger)


def cmd_generate(args, config, run_id) -> Path:
    pipeline = _pipeline(config, run_id)
    result = pipeline.execute(_read_json(args.brand), _read_json(args.draft))
    out = Path(config["paths"]["out_dir"]) / f"portfolio_{run_id}.json"
    _write_json(out, result.model_dump(by_alias=True))
    return out


def cmd_refine(args, config, run_id) -> Path:
    pipeline = _pipeline(config, run_id)
    scenes = _read_json(args.scenes)
    result, final_scenes = refine_or_fallback(pipeline, scenes)
    out = Path(config["paths"]["out_dir"]) / f"refined_{run_id}.json"
    if result is None:
        print("Refinement failed; writing the unrefined draft.")
        _write_json(out, {"scenes": final_scenes, "refined": False})
    else:
        _write_json(out, {**result.model_dump(by_alias=True), "refined": True})
    return out


def cmd_tree(args, config, run_id) -> None:
    data = _read_json(args.assessment)
    tree = compute_decision_tree(
        AssessmentConfig.model_validate(data["config"]),
        [AssessmentQuestion.model_validate(q) for q in data.get("questions", [])],
        [AssessmentAnswer.model_validate(a) for a in data.get("answers", [])],
    )
    print(f"Questions: {len(tree.nodes)}  Edges: {len(tree.edges)}  Reachable: {len(tree.reachable)}")
    for edge in tree.cycles:
        print(f"  cycle: {edge.from_question_id} -> {edge.to_question_id} ({edge.label})")
    for node in tree.orphaned:
        print(f"  orphaned: {node.id} {node.question_text}")


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--config", default="config/config.yaml")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Run all 6 refinement stages for a brand + draft")
    gen.add_argument("brand")
    gen.add_argument("draft")

    ref = sub.add_parser("refine", help="Run stages 2-6 over an existing scenes JSON file")
    ref.add_argument("scenes")

    tree = sub.add_parser("tree", help="Report reachability, cycles and orphans of an assessment")
    tree.add_argument("assessment")

    args = parser.parse_args()
    config = load_config(args.config)
    run_id = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")

    try:
        if args.command == "generate":
            print("\nCompleted. Artifact:", cmd_generate(args, config, run_id))
        elif args.command == "refine":
            print("\nCompleted. Artifact:", cmd_refine(args, config, run_id))
        else:
            cmd_tree(args, config, run_id)
    except Exception as e:
        print("\nPipeline Failed:", str(e))
        raise SystemExit(1)


if __name__ == "__main__":
    main()
