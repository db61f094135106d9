#!/usr/bin/env python3
# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""
RichTextSession Example: Composing an Email Body

This example walks through a typical compose session: typing, formatting,
undo/redo, a table, a paste from a word processor and the final export.
"""

import tempfile

from richtext_editor import RichTextSession
from richtext_editor.model import CellRef


def on_event(event_type, data):
    if event_type == "document_changed":
        print(f"   📝 {data['action']}: {data['html'][:60]}")


def main():
    print("🚀 RichTextSession Compose Example")
    print("=" * 50)

    print("1. Creating a session...")
    session = RichTextSession("compose-example", event_handler=on_event)
    session.apply_input("<p>Hello team</p>")

    print("\n2. Formatting the greeting...")
    session.select(0, 5)
    session.execute("bold")
    print(f"   ✅ Bold active: {session.format_state.bold}")

    print("\n3. Undo and redo...")
    session.undo()
    print(f"   ↩️  After undo: {session.html}")
    session.redo()
    print(f"   ↪️  After redo: {session.html}")

    print("\n4. Inserting a table...")
    session.select_all()
    session.select(session.selection.end)
    session.insert_table(rows=3, cols=2)
    session.select_cell(CellRef(table=0, row=1, column=0))
    result = session.add_row()
    print(f"   ✅ Add row applied: {result.applied} {result.message}")

    print("\n5. Pasting from a word processor...")
    session.select_all()
    session.select(session.selection.end)
    clipboard = '<p class="MsoNormal" style="mso-line-height-rule:exactly">Regards<o:p></o:p></p>'
    session.paste(html=clipboard)

    print("\n6. Plain text view...")
    session.convert_to_text()
    print(session.html)
    session.convert_to_html()

    print("\n7. Exporting...")
    exported = session.export()
    path = exported.save(tempfile.mkdtemp())
    print(f"   💾 Wrote {exported.to_dict()['size']} bytes to {path}")

    print("\n🎉 Done!")


if __name__ == "__main__":
    main()
