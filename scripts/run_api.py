#!/usr/bin/env python3
"""
Request engine の FastAPI サーバーを起動するエントリポイント

Usage:
  python scripts/run_api.py
  python scripts/run_api.py --port 9000 --no-reload
"""
import argparse
import sys
from pathlib import Path

# プロジェクトルートをPYTHONPATHに追加
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import uvicorn


def parse_args(argv=None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Run the reqflow API server")
    ap.add_argument("--host", default="127.0.0.1")
    ap.add_argument("--port", type=int, default=8000)
    ap.add_argument("--no-reload", dest="reload", action="store_false", help="disable auto reload")
    return ap.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)
    uvicorn.run(
        "api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,  # 開発時の自動リロード
    )


if __name__ == "__main__":
    main()
