# bulk_generate_pdfs.py
import argparse
import os
from pathlib import Path

from config import Config
from models import DOCUMENT_KINDS, Base, make_engine, make_session_factory, Document
from pdf_service import generate_and_store_pdf


def main(argv=None):
    parser = argparse.ArgumentParser(description="Bulk generate invoice and receipt PDFs.")
    parser.add_argument("--kind", choices=DOCUMENT_KINDS, default=None, help="Only generate PDFs for one document kind.")
    parser.add_argument("--all", action="store_true", help="Regenerate PDFs even if one already exists.")
    args = parser.parse_args(argv)

    # Ensure exports dir exists
    Path(Config.EXPORTS_DIR).mkdir(parents=True, exist_ok=True)

    engine = make_engine(Config.SQLALCHEMY_DATABASE_URI, echo=Config.SQLALCHEMY_ECHO)
    Base.metadata.create_all(engine)
    SessionLocal = make_session_factory(engine)

    with SessionLocal() as s:
        q = s.query(Document).order_by(Document.created_at.asc())

        if args.kind:
            q = q.filter(Document.kind == args.kind)

        docs = q.all()

        if not docs:
            print("No documents found for the given filter.")
            return 0

        total = len(docs)
        generated = 0
        skipped = 0
        failed = 0

        for i, doc in enumerate(docs, start=1):
            try:
                has_pdf = bool(doc.pdf_path) and os.path.exists(doc.pdf_path or "")
                if has_pdf and not args.all:
                    skipped += 1
                    print(f"[{i}/{total}] SKIP  {doc.kind} {doc.id} (already has PDF)")
                    continue

                path = generate_and_store_pdf(s, doc.id)
                generated += 1
                print(f"[{i}/{total}] DONE  {doc.kind} {doc.id} -> {path}")

            except Exception as e:
                s.rollback()
                failed += 1
                print(f"[{i}/{total}] FAIL  {doc.kind} {doc.id}  ({e})")

        print("\nBulk PDF generation complete.")
        print(f"Generated: {generated}")
        print(f"Skipped:   {skipped}")
        print(f"Failed:    {failed}")
        print(f"Exports:   {Config.EXPORTS_DIR}")
    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
