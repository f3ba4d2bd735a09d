"""
Fetch the Vosk speech model Sightline listens with.

    python download_model.py                # default small English model
    python download_model.py --dest ~/vosk  # somewhere else
"""

import argparse
import os
import shutil
import sys
import tempfile
import zipfile

import requests
from tqdm import tqdm

from sightline.config import DEFAULT_MODEL_NAME, load_config

MODEL_URL = f"https://alphacephei.com/vosk/models/{DEFAULT_MODEL_NAME}.zip"
CHUNK_SIZE = 64 * 1024


def fetch_archive(url, destination):
    """Stream url into destination, showing progress"""
    with requests.get(url, stream=True, timeout=30) as response:
        response.raise_for_status()
        expected = int(response.headers.get('content-length', 0))

        with open(destination, 'wb') as out, tqdm(
            desc=os.path.basename(url),
            total=expected or None,
            unit='B',
            unit_scale=True,
            unit_divisor=1024,
        ) as progress:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                progress.update(out.write(chunk))


def unpack_model(archive, model_path):
    """
    Unpack a model archive so its single top-level folder ends up at
    model_path, whatever the archive calls it.
    """
    with zipfile.ZipFile(archive) as bundle:
        broken = bundle.testzip()
        if broken:
            raise zipfile.BadZipFile(f"Corrupt member in archive: {broken}")
        roots = {name.split('/', 1)[0] for name in bundle.namelist()}
        if len(roots) != 1:
            raise zipfile.BadZipFile("Expected one model folder in the archive")

        staging = tempfile.mkdtemp(dir=os.path.dirname(model_path) or '.')
        try:
            bundle.extractall(staging)
            os.replace(os.path.join(staging, roots.pop()), model_path)
        finally:
            shutil.rmtree(staging, ignore_errors=True)


def download_model(url, model_path, force=False):
    """Download and unpack the model; True when it is in place afterwards"""
    if os.path.isdir(model_path) and not force:
        print(f"Model already present at {model_path}")
        return True

    if force and os.path.isdir(model_path):
        shutil.rmtree(model_path)

    os.makedirs(os.path.dirname(model_path) or '.', exist_ok=True)
    archive = model_path.rstrip(os.sep) + '.zip'

    print(f"Downloading {url}")
    try:
        fetch_archive(url, archive)
        print("Unpacking model...")
        unpack_model(archive, model_path)
    except (requests.RequestException, zipfile.BadZipFile, OSError) as e:
        print(f"Model download failed: {e}")
        return False
    finally:
        if os.path.exists(archive):
            os.remove(archive)

    print(f"Model ready at {model_path}")
    return True


def main(argv=None):
    parser = argparse.ArgumentParser(description="Download the Vosk model used for voice commands")
    parser.add_argument("--url", default=MODEL_URL, help="model archive to fetch")
    parser.add_argument("--dest", default=None,
                        help="model folder (default: SIGHTLINE_MODEL_PATH or the user data dir)")
    parser.add_argument("--force", action="store_true", help="replace an existing model")
    args = parser.parse_args(argv)

    dest = os.path.expanduser(args.dest) if args.dest else load_config().model_path
    return 0 if download_model(args.url, dest, force=args.force) else 1


if __name__ == "__main__":
    sys.exit(main())
