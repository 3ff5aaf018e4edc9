# constraintkit

Building blocks for a policy constraint framework: constraint templates, the
CRD schemas that constraints are validated against, an external-data provider
cache, and a driver that talks to a remote OPA server over its REST API.

The package has no runtime dependencies beyond the standard library.

## Install

```
pip install constraintkit
```

Install with `pip install "constraintkit[test]"` to get the test dependencies.

## Constraint templates and CRDs

`constraintkit.templates` holds the `ConstraintTemplate` dataclasses;
`constraintkit.cts` has helpers to build them, and `constraintkit.crds`
turns a template into a CRD and validates templates, CRDs and constraints.

```python
from constraintkit import cts, crds
from constraintkit.handlertest import Handler

template = cts.new(
    cts.opt_name("horses"),
    cts.opt_crd_names("Horse"),
    cts.opt_crd_schema({"fast": cts.prop_typed("boolean")}),
)
crds.validate_targets(template)

schema = crds.create_schema(template, Handler())
crd = crds.create_crd(template, schema)   # a plain dict
crds.validate_crd(crd)
```

Constraints are nested dictionaries wrapped in
`constraintkit.constraints.Unstructured`. `constraintkit.clienttest` builds
example constraints and templates:

```python
from constraintkit.clienttest import make_constraint, enforcement_action

constraint = make_constraint("Horse", "my-horse", enforcement_action("dryrun"))
crds.validate_cr(constraint, crd)
```

`constraintkit.constraints.semantic_equal` compares two constraints by their
`spec` only; `ConstraintTemplate.semantic_equal` does the same for templates.

Failures are raised as subclasses of
`constraintkit.errors.ConstraintFrameworkError`, for example
`InvalidConstraintTemplateError` or `InvalidConstraintError`.
`constraintkit.errors.ErrorMap` collects errors keyed by target name.

## Target handlers

`constraintkit.handler.TargetHandler` is the abstract interface a target
implements: its name, its Rego library template, the schema of a
constraint's `match` field, and how data, reviews and violations are handled.
`constraintkit.handlertest.Handler` is a small working implementation for
`Object` and `Review` values, with a namespace-based `Matcher`.

## External data providers

```python
from constraintkit.externaldata import Provider, ProviderCache

cache = ProviderCache()
cache.upsert(Provider(name="my-provider", url="https://provider.example.com", timeout=3))
provider = cache.get("my-provider")
```

`upsert` raises `ValueError` for an empty name, a URL that is not `http://`
or `https://`, or a negative timeout; `get` raises `KeyError` for an unknown
name. `new_provider_request` builds the request sent to a provider, and
`new_rego_response` with `prepare_rego_response` (or `handle_error`) turns a
provider's reply into the value handed to a policy.

## Talking to an OPA server

```python
from constraintkit.remote import RemoteDriver

driver = RemoteDriver(url="http://localhost:8181", auth="token")
driver.put_module("example", "package example\nallow = true")
response = driver.query('hooks["test.target"].violation', {"review": {}})
for result in response.results:
    print(result["msg"])
```

`RemoteDriver` implements the `constraintkit.drivers.Driver` interface; pass
`constraintkit.drivers.tracing(True)` to `query` to ask for an explanation.
`constraintkit.opa_http.HTTPClient` gives lower-level access to the REST API
(policies, data, JSON patches and queries); server errors are raised as
`OPAError`.

## Target library

`constraintkit.regolib.render_target_lib("my.target")` renders the Rego
library that wires a target's matching rules to the constraint templates.

## What this package does not do

- It does not parse, compile or evaluate Rego itself. Policies are only
  evaluated by a remote OPA server through `RemoteDriver`; there is no
  in-process driver.
- `RemoteDriver` stores modules and data and runs queries; it does not add or
  remove constraint templates as a whole.
- There is no client that ties handlers, templates, constraints and a driver
  together, and no command-line program.