# cookbuild

`cookbuild` is a small incremental build library for C and C++ projects. It
reads a recipe written in the HELL6.99MO (`.h699`) format, works out which
targets changed since the last build and runs the compiler only for those.

## Installing

```
pip install .
```

## The recipe format

A recipe lists each source file as a scope, with its build settings inside:

```
main.cc:
    out = "app"
    bin = "bin"
    compiler = "g++"
    combine = ["lib.cc", "lib2.cc"]
    include = ["include"]
    lib = ["m"]
    pkg_in = ["gtk+-3.0"]
    show_logs = true
```

Values are strings (`"..."`), arrays of strings (`[...]`), booleans
(`true`/`false`), `UNIDEF`, or numbers. `#` starts a comment outside a string.

Lines starting with `@` are attributes, handled while the document is read:

- `@import other.h699` pulls in another file once.
- `@show_logs true` / `@show_logs false` turns logging on or off.
- `@callback <command>` adds the command to the document's `callbacks` list.
- `@system <command>` runs a shell command straight away.

### Reading and writing documents

```python
from cookbuild.document import H699Document

doc = H699Document("settings.h699")
doc.parse(True)
print(doc.get("main.cc.out").string_value)
doc.set("main.cc.out", "app2")
doc.write("settings.h699")
```

`H699Document.get` returns an `H699Value` whose `type` is a `ValueType`
(`STRING`, `NUMBER`, `BOOL`, `UNIDEF`, `ARRAY`, or `UNDEFINED` for a missing
key). `new_key` adds a key of a given kind and `set_array` replaces an
array's items. `cookbuild.lexer.Lexer.tokenize` and
`cookbuild.lexer.remove_comments` give access to the lower-level steps.

## Building a project

The build is driven from Python:

```python
from cookbuild.builder import BuildPlanner
from cookbuild.document import H699Document
from cookbuild.executer import Executor
from cookbuild.lexer import Lexer
from cookbuild.log import Logger

logger = Logger(allowed=True)
recipe = H699Document("recipe", Lexer(logger))
recipe.parse()

planner = BuildPlanner(increment=True, logger=logger)
jobs = planner.plan(recipe)
Executor(planner.cache, logger, parallel=True, thread_limit=4).run(
    jobs, planner.compare_files
)
```

`BuildPlanner.plan` walks the recipe's scopes in order and returns a
`BuildJob` for each target that needs building. With `increment=True` a
target is skipped when its source, its binary and its combined files are
unchanged since the last run. A scope called `global` sets defaults without
building anything. Target paths are taken relative to the current directory.

Settings carry over from one target to the next (`TargetSettings`). Each
target may set `out`, `bin`, `compiler`, `compiler_arguments`,
`compiler_parguments`, `system`, `psystem`, `show_logs`, and the lists
`include`, `lib`, `pkg_in` and `combine`; the `_add` and `_rem` variants
(`combine_add`, `include_rem`, `lib_add`, `pkg_in_rem`, ...) change the
inherited lists. Packages in `pkg_in` are looked up with `pkg-config`
through `PackageResolver`. A job's command runs `psystem`, then the compiler
call, then `system`.

`Executor.run` runs each job's commands in a shell, one after another or on
a pool of at most `thread_limit` threads, and records the new stamps.

Build state is kept in the cache directory (`CookCache` by default): file
stamps in `increment.h699` (see `IncrementCache` and `file_stamp`), and one
file per target recording the stamps of its combined files (see
`cache_file_for`).

## Errors and logging

`cookbuild.log.Logger` prints coloured log lines when `allowed` is set;
its `warning` and `error` print a message and raise
`cookbuild.log.CookError` (whose `exit_code` is 3). Errors in the format
raise `cookbuild.lexer.H699Error`, a subclass of `CookError`.

## What this package does not do

- There is no command-line program; builds are started from Python as shown
  above.
- Commands collected from `@callback` attributes are not run by the package;
  they are left in the document's `callbacks` list for the caller.
- There is no automatic second build pass and no fallback to running a
  plain list of shell commands when no recipe exists.