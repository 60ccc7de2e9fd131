# apigenkit

Tooling for projects that generate API client libraries from discovery
specifications.

- **Naming rules** (`apigenkit.naming`): derive crate names, make targets,
  directory layouts and normalized version strings from an API's name and
  version, and map a discovery directory index into a `MappedIndex`.
- **URI template parsing** (`apigenkit.uri_template`): parse RFC 6570 URI
  templates into `Literal` and `Expression` nodes.
- **Template substitution** (`apigenkit.templating`, `apigenkit.spec`):
  render Jinja2 templates with structured JSON or YAML data, mapping template
  sources to destinations with specs such as `input.tpl:output.txt`.
- **Formatted output** (`apigenkit.rustfmt`): `RustFmtWriter` pipes written
  code through `rustfmt` when it can be found.

## Installation

```
pip install .
```

## Command line

### map-api-index

```
apigenkit map-api-index discovery.json mapped.json etc/api gen
```

Reads a discovery directory index (`discovery.json`), maps each item to an
API entry (crate names, make target, spec and log file paths) and writes the
result as JSON to `mapped.json`. An API is dropped when its spec file is
missing under the spec directory (`etc/api`), or when a `generator-errors.log`
or `cargo-errors.log` exists for it under the output directory (`gen`). When
a continuous integration environment is detected, only a fixed short list of
APIs (`naming.CI_WHITELIST`) is kept.

### substitute (alias: sub)

```
apigenkit substitute --data=data.yaml page.tpl:out/page.txt other.tpl
```

Renders `page.tpl` into `out/page.txt` and `other.tpl` to standard output.
Each spec has the form `<src>:<dst>`: an empty `<src>` reads the template
from standard input (at most one spec may do so), an empty or missing
`<dst>` writes to standard output. Output directories are created as needed.
When `--data` is given and no spec is, the template is read from standard
input and written to standard output.

Templates use Jinja2 syntax, and referring to an undefined variable is an
error. The data's root must be a mapping. A spec whose output would overwrite
its own template is refused.

Options:

- `-d PATH`, `--data=PATH`: the data file, JSON or YAML. Without it, data is
  read from standard input.
- `-s TEXT`, `--separator=TEXT`: written between documents sent to the same
  file or to standard output more than once (default: a newline).
- `--replace=FIND:REPLACE`: replace text in every string value of the data
  before rendering. May be repeated; the values must form pairs.
- `-v`, `--validate`: require each rendered output to parse as YAML (which
  includes JSON).

A global `-l`/`--log-level` option takes `INFO` (default), `ERROR`, `DEBUG`
or `TRACE`:

```
apigenkit --log-level=DEBUG map-api-index discovery.json mapped.json etc/api gen
```

On failure the command prints the error and its causes to standard error and
exits with status 1.

## Library use

```python
from apigenkit.naming import lib_crate_name, make_target, parse_version, sanitized_name
from apigenkit.uri_template import ast_nodes

lib_crate_name("youtube", "v2.0")    # "google-youtube2d0"
make_target("youtube", "v1.3")       # "youtube1d3"
parse_version("v1.3")                # "1d3"
sanitized_name("foo20")              # "foo"
ast_nodes("/{foo}/{bar,baz}/literal")
```

Malformed versions raise `naming.NamingError`; malformed URI templates raise
`uri_template.ParseError`; problems with specs, templates or data raise
`spec.TemplatingError`.

`RustFmtWriter` looks for `rustfmt` on the `PATH`, or uses the program named
by the `RUSTFMT` environment variable; an empty `RUSTFMT` disables
formatting and writes the bytes unchanged.

## What this package does not do

It does not download API specifications, generate client library or
command-line code, run builds or collect build errors, or produce shell
completions. `map-api-index` only records names and paths for APIs whose
specs are already present.