"""CI specializations."""

from spike_mcp.specializations.common import GenContext, Scaffold

# Install/test commands per language
_CI_STEPS: dict[str, tuple[str, ...]] = {
    "ts": (
        "      - uses: actions/setup-node@v4\n        with: { node-version: '20' }\n",
        "      - run: npm ci\n",
        "      - run: npm test\n",
    ),
    "js": (
        "      - uses: actions/setup-node@v4\n        with: { node-version: '20' }\n",
        "      - run: npm ci\n",
        "      - run: npm test\n",
    ),
    "py": (
        "      - uses: actions/setup-python@v5\n        with: { python-version: '3.12' }\n",
        "      - run: pip install -r requirements.txt\n",
        "      - run: pytest\n",
    ),
    "go": (
        "      - uses: actions/setup-go@v5\n        with: { go-version: '1.22' }\n",
        "      - run: go build ./...\n",
        "      - run: go test ./...\n",
    ),
    "rs": (
        "      - uses: dtolnay/rust-toolchain@stable\n",
        "      - run: cargo build\n",
        "      - run: cargo test\n",
    ),
    "kt": (
        "      - uses: actions/setup-java@v4\n        with: { distribution: temurin, java-version: '21' }\n",
        "      - run: ./gradlew build\n",
        "      - run: ./gradlew test\n",
    ),
}


def _workflow(name: str, job: str, steps: tuple[str, ...]) -> str:
    return (
        f"name: {name}\n"
        "on: [push, pull_request]\n"
        "jobs:\n"
        f"  {job}:\n"
        "    runs-on: ubuntu-latest\n"
        "    steps:\n"
        "      - uses: actions/checkout@v4\n" + "".join(steps)
    )


def github_actions(ctx: GenContext, out: Scaffold) -> None:
    steps = _CI_STEPS.get(ctx.lang, _CI_STEPS["ts"])

    if ctx.pattern in ("config", "init"):
        out.file(".github/workflows/ci.yml", _workflow("CI", "test", steps))
        if ctx.style == "advanced":
            out.file(
                ".github/workflows/monorepo.yml",
                "name: Monorepo\n"
                "on: [push]\n"
                "jobs:\n"
                "  build:\n"
                "    runs-on: ubuntu-latest\n"
                "    strategy:\n"
                "      matrix:\n"
                "        package: [web, api]\n"
                "    steps:\n"
                "      - uses: actions/checkout@v4\n"
                "      - run: echo building ${{ matrix.package }} for {{app_name}}\n",
            )
    elif ctx.pattern == "job":
        name = "e2e" if ctx.style == "advanced" else "job"
        out.file(
            f".github/workflows/{name}.yml",
            _workflow(name.upper() if name == "e2e" else "Job", name, steps),
        )
