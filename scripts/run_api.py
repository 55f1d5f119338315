"""Launch the cart pricing API under uvicorn with `src` on the import path."""
import os
import subprocess
import sys
from pathlib import Path


def main():
    project_root = Path(__file__).parent.parent
    src_path = str(project_root / "src")

    env = os.environ.copy()
    env["PYTHONPATH"] = os.pathsep.join(p for p in (src_path, env.get("PYTHONPATH")) if p)

    host = env.get("CART_PRICING_HOST", "127.0.0.1")
    port = env.get("CART_PRICING_PORT", "8000")
    print(f"Starting Cart Pricing API on {host}:{port} "
          f"(price source: {env.get('CART_PRICING_SOURCE', 'static')})")
    try:
        subprocess.run(
            [sys.executable, "-m", "uvicorn", "cart_pricing.api.main:app",
             "--host", host, "--port", port],
            env=env,
            cwd=project_root,
        )
    except KeyboardInterrupt:
        print("\nAPI stopped.")


if __name__ == "__main__":
    main()
