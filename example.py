"""Example usage of SpecDiff comparison engine."""

import json
from specdiff import (
    SpecDiffEngine,
    EngineConfig,
    ComparisonSession,
    UnifiedPresenter,
    SplitPresenter,
    ChangelogPresenter,
)

# Version 1 of a small pet store API
previous_spec = {
    "openapi": "3.0.0",
    "info": {"title": "Pet Store", "version": "1.0.0"},
    "paths": {
        "/pets": {
            "get": {
                "responses": {
                    "200": {
                        "content": {
                            "application/json": {
                                "schema": {
                                    "type": "object",
                                    "required": ["id", "name"],
                                    "properties": {
                                        "id": {"type": "string"},
                                        "name": {"type": "string"}
                                    }
                                }
                            }
                        }
                    }
                }
            },
            "delete": {"responses": {"204": {"description": "Deleted"}}}
        },
        "/legacy": {
            "get": {"responses": {"200": {"description": "OK"}}}
        }
    }
}

# Version 2: /legacy dropped, DELETE /pets dropped, POST /pets added
current_spec = {
    "openapi": "3.0.0",
    "info": {"title": "Pet Store", "version": "2.0.0"},
    "paths": {
        "/pets": {
            "get": {
                "responses": {
                    "200": {
                        "content": {
                            "application/json": {
                                "schema": {
                                    "type": "object",
                                    "required": ["id"],
                                    "properties": {
                                        "id": {"type": "string"},
                                        "name": {"type": "string"}
                                    }
                                }
                            }
                        }
                    }
                }
            },
            "post": {
                "requestBody": {
                    "content": {
                        "application/json": {
                            "schema": {"type": "object", "required": ["name"]}
                        }
                    }
                },
                "responses": {"201": {"description": "Created"}}
            }
        }
    }
}


def main():
    print("=" * 60)
    print("SpecDiff Comparison Engine - Example")
    print("=" * 60)

    # Create engine with default config
    engine = SpecDiffEngine()

    result = engine.compare(previous_spec, current_spec)

    # Check result type
    if hasattr(result, 'is_identical'):
        # Success - FullSchemaReport
        print(f"\nIdentical: {result.is_identical}")
        print(f"\nExecution:")
        print(f"  Duration: {result.execution.duration_ms}ms")
        print(f"  Engine Version: {result.execution.engine_version}")

        print(f"\nSummary:")
        print(f"  Lines Added: {result.summary.lines_added}")
        print(f"  Lines Removed: {result.summary.lines_removed}")
        print(f"  Sections: {result.summary.sections}")

        presenter = UnifiedPresenter(
            result.parts,
            lines=result.lines,
            sections=result.sections,
            change_index=result.change_index,
        )
        print("\n" + presenter.render_text(presenter.present("name"), context_lines=2))

        changelog = ChangelogPresenter(engine.classifier)
        print("\n" + changelog.render_text(
            changelog.present(result.classification, version_label="v2", expanded=True)
        ))

        print("\n" + "-" * 60)
        print("Full JSON Report:")
        print(json.dumps(result.to_dict()["summary"], indent=2))

    else:
        # Error - ErrorResponse
        print(f"\nError: {result.error['code']}")
        print(f"Message: {result.error['message']}")
        print(f"Details: {result.error.get('details', {})}")


def example_split_view():
    """Example showing both documents side by side."""
    print("\n" + "=" * 60)
    print("Example with Split View")
    print("=" * 60)

    engine = SpecDiffEngine(EngineConfig(detect_changes=False))
    result = engine.compare(previous_spec["info"], current_spec["info"])

    presenter = SplitPresenter(result.parts)
    print(presenter.render_text(presenter.present("version"), width=40))


def example_session():
    """Example driving the interactive view state without a backend."""
    print("\n" + "=" * 60)
    print("Example with Comparison Session")
    print("=" * 60)

    session = ComparisonSession()
    session.set_available_versions([1, 2, 4])

    # Version 3 does not exist: the nearest one is used
    ticket = session.select_versions(1, 3)
    for notice in session.notices:
        print(f"Notice: {notice}")

    session.resolve(ticket, {
        "previous_version": ticket.pair[0],
        "current_version": ticket.pair[1],
        "previous_spec": previous_spec,
        "current_spec": current_spec,
    })
    session.toggle_section("info")
    session.next_change()
    print(session.render_text(context_lines=1))

    # A pair whose full documents were never stored
    ticket = session.select_versions(1, 2)
    session.resolve(ticket, {"previous_version": 1, "current_version": 2})
    session.attach_fallback({"breaking": True, "changes": [
        {"type": "endpoint_removed", "path": "/legacy"},
    ]})
    print(session.render_text())


if __name__ == "__main__":
    main()
    example_split_view()
    example_session()
