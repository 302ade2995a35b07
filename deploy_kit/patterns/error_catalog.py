"""
SST config error catalog.

Static reference data for every violation code: what the error means,
why it happens, before/after examples and documentation links. The
catalog is built once at import time and exposed read-only.

Codes follow ``SST-VAL-NNN`` and are never reused. ``SST-VAL-012a``
predates the three-digit format and is kept as is for stability.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from .base import PatternCategory

_RULE = "=" * 80


@dataclass(frozen=True)
class ErrorCatalogEntry:
    """Reference documentation for one violation code."""

    code: str
    title: str
    description: str
    category: PatternCategory
    root_cause: str
    bad_example: str
    good_example: str
    related_codes: tuple[str, ...] = ()
    sst_docs_url: str | None = None
    deploy_kit_docs_url: str | None = None


_SST_CONFIG_DOCS = "https://sst.dev/docs/reference/config"
_SST_DOMAIN_DOCS = "https://sst.dev/docs/component/aws/nextjs#domain"
_SST_CORS_DOCS = "https://sst.dev/docs/component/aws/bucket#cors"
_SST_LINKABLE_DOCS = "https://sst.dev/docs/reference/linkable"
_LAMBDA_ENV_DOCS = (
    "https://docs.aws.amazon.com/lambda/latest/dg/"
    "configuration-envvars.html#configuration-envvars-runtime"
)

_ENTRIES = [
    # Config file
    ErrorCatalogEntry(
        code="SST-VAL-000",
        title="Config File Not Found",
        description=(
            "sst.config.ts could not be found or read, so no other pattern "
            "checks were run."
        ),
        category=PatternCategory.CONFIG_FILE,
        root_cause=(
            "The detector was pointed at a project root without an "
            "sst.config.ts, or the file is unreadable (permissions, encoding)."
        ),
        bad_example="my-app/\n  package.json\n  # no sst.config.ts",
        good_example=(
            "my-app/\n  package.json\n  sst.config.ts  // ✅ CORRECT - config at project root"
        ),
        sst_docs_url=_SST_CONFIG_DOCS,
        deploy_kit_docs_url="#config-file",
    ),
    # Stage variable patterns (SST-VAL-001 to SST-VAL-010)
    ErrorCatalogEntry(
        code="SST-VAL-001",
        title="Wrong Stage Variable - Using input.stage in run() Function",
        description=(
            "Using input?.stage or input.stage in the run() function causes silent "
            "failures because run() does not receive input parameter. Note: "
            "input?.stage is VALID in app() function."
        ),
        category=PatternCategory.STAGE_VARIABLE,
        root_cause=(
            "SST v3 API: app(input) receives input parameter (input?.stage is valid), "
            "but run() does not receive parameters (must use $app.stage instead)."
        ),
        bad_example="""\
// ❌ WRONG - input is undefined in run()
async run() {
  const stage = input?.stage || "dev";
  // This silently fails - stage is always "dev"
}""",
        good_example="""\
// ✅ CORRECT - input?.stage in app(), $app.stage in run()
app(input) {
  return {
    removal: input?.stage === "production" ? "retain" : "remove"  // ✅ Valid
  };
},
async run() {
  const stage = $app.stage;  // ✅ Valid - use global $app
}""",
        related_codes=("SST-VAL-002", "SST-VAL-003"),
        sst_docs_url=_SST_CONFIG_DOCS,
        deploy_kit_docs_url="#stage-variable-patterns",
    ),
    ErrorCatalogEntry(
        code="SST-VAL-002",
        title="Incorrect Function Signature - run() Should Not Accept Parameters",
        description="The run() function in sst.config.ts should not accept any parameters in SST v3.",
        category=PatternCategory.FUNCTION_SIGNATURE,
        root_cause=(
            "SST v3 removed input parameter from run() function. Stage and other "
            "config come from globals."
        ),
        bad_example="""\
export default $config({
  async run(input: any) {  // ❌ WRONG - no parameters
    // ...
  }
})""",
        good_example="""\
export default $config({
  async run() {  // ✅ CORRECT - no parameters
    const stage = $app.stage;
    const region = $app.providers.aws.region;
  }
})""",
        related_codes=("SST-VAL-001",),
        sst_docs_url=_SST_CONFIG_DOCS,
        deploy_kit_docs_url="#function-signature-patterns",
    ),
    ErrorCatalogEntry(
        code="SST-VAL-003",
        title="Hardcoded Stage Value - Should Use $app.stage",
        description=(
            'Hardcoding stage values like "dev", "staging", "production" prevents '
            "proper multi-stage deployments."
        ),
        category=PatternCategory.STAGE_VARIABLE,
        root_cause="Hardcoded stages break when deploying to different environments with --stage flag.",
        bad_example="""\
const stage = "dev";  // ❌ WRONG - hardcoded
const domain = stage === "production" ? "example.com" : undefined;""",
        good_example="""\
const stage = $app.stage;  // ✅ CORRECT - dynamic
const domain = stage === "production" ? "example.com" :
               stage === "staging" ? "staging.example.com" : undefined;""",
        related_codes=("SST-VAL-001", "SST-VAL-011"),
        sst_docs_url=_SST_CONFIG_DOCS,
        deploy_kit_docs_url="#stage-variable-patterns",
    ),
    # Domain configuration patterns (SST-VAL-011 to SST-VAL-020)
    ErrorCatalogEntry(
        code="SST-VAL-011",
        title="Incorrect Domain Conditional - Using !== Instead of Explicit Checks",
        description=(
            'Using stage !== "dev" for domain config breaks for other non-production '
            "stages like staging, preview, etc."
        ),
        category=PatternCategory.DOMAIN_CONFIG,
        root_cause="Negative conditionals fail to account for multiple non-production stages.",
        bad_example="""\
domain: stage !== "dev" ? {  // ❌ WRONG
  name: "example.com",
  redirects: ["www.example.com"]
} : undefined
// This breaks for "staging", "preview", "test", etc.""",
        good_example="""\
// ✅ CORRECT - explicit stage checks
domain: stage === "production" ? {
  name: "example.com",
  redirects: ["www.example.com"]
} : stage === "staging" ? {
  name: "staging.example.com"
} : undefined""",
        related_codes=("SST-VAL-003", "SST-VAL-012"),
        sst_docs_url=_SST_DOMAIN_DOCS,
        deploy_kit_docs_url="#domain-configuration-patterns",
    ),
    ErrorCatalogEntry(
        code="SST-VAL-012",
        title="Missing DNS Configuration - Required for Custom Domains",
        description=(
            "Custom domains MUST have explicit dns configuration to prevent "
            "CloudFront CNAME conflicts and deployment failures."
        ),
        category=PatternCategory.DOMAIN_CONFIG,
        root_cause=(
            "SST requires explicit DNS provider configuration when using custom "
            "domains. Without it, CloudFront CNAME conflicts cause deployment to "
            "fail with CNAMEAlreadyExists error."
        ),
        bad_example="""\
domain: {
  name: "example.com",  // ❌ Missing dns property - WILL FAIL
  redirects: ["www.example.com"]
}""",
        good_example="""\
domain: {
  name: "example.com",
  redirects: ["www.example.com"],
  dns: sst.aws.dns({           // ✅ CORRECT - explicit DNS with override
    zone: "Z1234567890ABC",
    override: true              // Required for existing distributions
  })
}""",
        related_codes=("SST-VAL-011", "SST-VAL-012a"),
        sst_docs_url=_SST_DOMAIN_DOCS,
        deploy_kit_docs_url="#domain-configuration-patterns",
    ),
    ErrorCatalogEntry(
        code="SST-VAL-012a",
        title="Missing dns.override Parameter - Required for Existing CloudFront Distributions",
        description=(
            "When updating existing CloudFront distributions, dns.override: true is "
            "REQUIRED or deployment will fail with CNAMEAlreadyExists error, which "
            "typically forces a manual distribution deletion and production downtime."
        ),
        category=PatternCategory.DOMAIN_CONFIG,
        root_cause=(
            "SST cannot update DNS for existing CloudFront distributions without "
            "explicit override: true. This is a common cause of production "
            "deployment failures."
        ),
        bad_example="""\
domain: {
  name: "example.com",
  dns: sst.aws.dns({
    zone: "Z1234567890ABC"  // ❌ Missing override - WILL FAIL if distribution exists
  })
}""",
        good_example="""\
domain: {
  name: "example.com",
  dns: sst.aws.dns({
    zone: "Z1234567890ABC",
    override: true           // ✅ CORRECT - can update existing distribution
  })
}""",
        related_codes=("SST-VAL-012",),
        sst_docs_url=_SST_DOMAIN_DOCS,
        deploy_kit_docs_url="#domain-configuration-patterns",
    ),
    # CORS configuration patterns (SST-VAL-021 to SST-VAL-030)
    ErrorCatalogEntry(
        code="SST-VAL-021",
        title="CORS Property Name Typo - allowedOrigins vs allowOrigins",
        description="Using allowedOrigins instead of allowOrigins causes CORS errors.",
        category=PatternCategory.CORS_CONFIG,
        root_cause=(
            'SST uses allowOrigins (no "ed"), not allowedOrigins. Inconsistent '
            "naming with AWS SDK."
        ),
        bad_example="""\
cors: {
  allowHeaders: ["*"],
  allowedOrigins: ["*"],  // ❌ WRONG - should be allowOrigins
  allowMethods: ["GET", "POST"]
}""",
        good_example="""\
cors: {
  allowHeaders: ["*"],
  allowOrigins: ["*"],  // ✅ CORRECT
  allowMethods: ["GET", "POST"]
}""",
        related_codes=("SST-VAL-022", "SST-VAL-023"),
        sst_docs_url=_SST_CORS_DOCS,
        deploy_kit_docs_url="#cors-configuration-patterns",
    ),
    ErrorCatalogEntry(
        code="SST-VAL-022",
        title="CORS Property Name Typo - allowedMethods vs allowMethods",
        description="Using allowedMethods instead of allowMethods causes CORS errors.",
        category=PatternCategory.CORS_CONFIG,
        root_cause='SST uses allowMethods (no "ed"), not allowedMethods.',
        bad_example="""\
cors: {
  allowedMethods: ["GET", "POST"]  // ❌ WRONG
}""",
        good_example="""\
cors: {
  allowMethods: ["GET", "POST"]  // ✅ CORRECT
}""",
        related_codes=("SST-VAL-021", "SST-VAL-023"),
        sst_docs_url=_SST_CORS_DOCS,
        deploy_kit_docs_url="#cors-configuration-patterns",
    ),
    ErrorCatalogEntry(
        code="SST-VAL-023",
        title="CORS Property Name Typo - allowedHeaders vs allowHeaders",
        description="Using allowedHeaders instead of allowHeaders causes CORS errors.",
        category=PatternCategory.CORS_CONFIG,
        root_cause='SST uses allowHeaders (no "ed"), not allowedHeaders.',
        bad_example="""\
cors: {
  allowedHeaders: ["*"]  // ❌ WRONG
}""",
        good_example="""\
cors: {
  allowHeaders: ["*"]  // ✅ CORRECT
}""",
        related_codes=("SST-VAL-021", "SST-VAL-022"),
        sst_docs_url=_SST_CORS_DOCS,
        deploy_kit_docs_url="#cors-configuration-patterns",
    ),
    ErrorCatalogEntry(
        code="SST-VAL-024",
        title="CORS Configured as Array - Should Be Object",
        description="CORS should be an object with properties, not an array.",
        category=PatternCategory.CORS_CONFIG,
        root_cause="SST v3 changed CORS from array to object configuration.",
        bad_example="""\
cors: [{  // ❌ WRONG - array
  allowOrigins: ["*"],
  allowHeaders: ["*"]
}]""",
        good_example="""\
cors: {  // ✅ CORRECT - object
  allowOrigins: ["*"],
  allowHeaders: ["*"]
}""",
        related_codes=("SST-VAL-021",),
        sst_docs_url=_SST_CORS_DOCS,
        deploy_kit_docs_url="#cors-configuration-patterns",
    ),
    # Pulumi output patterns (SST-VAL-031 to SST-VAL-040)
    ErrorCatalogEntry(
        code="SST-VAL-031",
        title="Unnecessary $interpolate Wrapper - Direct Output Usage",
        description=(
            "Using $interpolate for simple Pulumi Output values is unnecessary and "
            "adds complexity."
        ),
        category=PatternCategory.PULUMI_OUTPUT,
        root_cause=(
            "SST v3 automatically handles Pulumi Outputs in most contexts. "
            "$interpolate only needed for string templates."
        ),
        bad_example="link: [$interpolate`${bucket.arn}`]  // ❌ WRONG - unnecessary wrapper",
        good_example="""\
link: [bucket.arn]  // ✅ CORRECT - direct usage
// Use $interpolate only for actual templates:
link: [`${bucket.arn}/*`]  // ✅ Also correct for templates""",
        related_codes=("SST-VAL-032",),
        sst_docs_url=_SST_LINKABLE_DOCS,
        deploy_kit_docs_url="#pulumi-output-patterns",
    ),
    ErrorCatalogEntry(
        code="SST-VAL-032",
        title="Pulumi Output in String Context - Need $interpolate or .apply()",
        description=(
            "Pulumi Outputs cannot be used directly in string concatenation or "
            "comparisons."
        ),
        category=PatternCategory.PULUMI_OUTPUT,
        root_cause="Pulumi Outputs are async values that require special handling in string contexts.",
        bad_example="""\
const url = "https://" + domain.name;  // ❌ WRONG - Output in string concat
if (bucket.arn === "some-value") { }  // ❌ WRONG - Output in comparison""",
        good_example="""\
const url = $interpolate`https://${domain.name}`;  // ✅ CORRECT
bucket.arn.apply(arn => {  // ✅ CORRECT - use .apply()
  if (arn === "some-value") { }
});""",
        related_codes=("SST-VAL-031",),
        sst_docs_url="https://www.pulumi.com/docs/concepts/inputs-outputs/",
        deploy_kit_docs_url="#pulumi-output-patterns",
    ),
    # Environment variable patterns (SST-VAL-041 to SST-VAL-050)
    ErrorCatalogEntry(
        code="SST-VAL-041",
        title="Reserved Lambda Environment Variable - AWS_ACCESS_KEY_ID",
        description=(
            "AWS_ACCESS_KEY_ID is a reserved Lambda environment variable and cannot "
            "be set manually."
        ),
        category=PatternCategory.ENVIRONMENT_VARIABLE,
        root_cause=(
            "Lambda runtime sets AWS credentials automatically. Manual override is "
            "forbidden and causes deployment errors."
        ),
        bad_example="""\
environment: {
  AWS_ACCESS_KEY_ID: "...",  // ❌ FORBIDDEN
  AWS_SECRET_ACCESS_KEY: "..."  // ❌ FORBIDDEN
}""",
        good_example="""\
environment: {
  BUCKET_NAME: bucket.name,  // ✅ CORRECT - custom variable
  // AWS credentials are automatically provided by Lambda
}""",
        related_codes=("SST-VAL-042", "SST-VAL-043"),
        sst_docs_url=_LAMBDA_ENV_DOCS,
        deploy_kit_docs_url="#environment-variable-patterns",
    ),
    ErrorCatalogEntry(
        code="SST-VAL-042",
        title="Reserved Lambda Environment Variable - _HANDLER",
        description="Variables starting with _ are reserved by Lambda runtime.",
        category=PatternCategory.ENVIRONMENT_VARIABLE,
        root_cause="Lambda reserves all variables starting with underscore for internal runtime use.",
        bad_example="""\
environment: {
  _HANDLER: "index.handler",  // ❌ FORBIDDEN
  _X_AMZN_TRACE_ID: "..."  // ❌ FORBIDDEN
}""",
        good_example="""\
environment: {
  HANDLER_NAME: "index.handler",  // ✅ CORRECT - no underscore prefix
}""",
        related_codes=("SST-VAL-041",),
        sst_docs_url=_LAMBDA_ENV_DOCS,
        deploy_kit_docs_url="#environment-variable-patterns",
    ),
    ErrorCatalogEntry(
        code="SST-VAL-043",
        title="Reserved Lambda Environment Variable - LAMBDA_*",
        description="Variables starting with LAMBDA_ are reserved by Lambda runtime.",
        category=PatternCategory.ENVIRONMENT_VARIABLE,
        root_cause="Lambda reserves LAMBDA_ prefix for runtime configuration.",
        bad_example="""\
environment: {
  LAMBDA_TASK_ROOT: "/var/task",  // ❌ FORBIDDEN
}""",
        good_example="""\
environment: {
  APP_TASK_ROOT: "/var/task",  // ✅ CORRECT - different prefix
}""",
        related_codes=("SST-VAL-041", "SST-VAL-042"),
        sst_docs_url=_LAMBDA_ENV_DOCS,
        deploy_kit_docs_url="#environment-variable-patterns",
    ),
    # Resource dependency patterns (SST-VAL-051 to SST-VAL-060)
    ErrorCatalogEntry(
        code="SST-VAL-051",
        title="Circular Resource Dependency Detected",
        description="Two or more resources depend on each other creating a circular dependency.",
        category=PatternCategory.RESOURCE_DEPENDENCY,
        root_cause="Circular dependencies prevent proper resource ordering during deployment.",
        bad_example="""\
const fnA = new sst.aws.Function("A", {
  link: [fnB]  // ❌ WRONG - A depends on B
});
const fnB = new sst.aws.Function("B", {
  link: [fnA]  // ❌ WRONG - B depends on A (circular!)
});""",
        good_example="""\
// ✅ CORRECT - proper hierarchy
const fnA = new sst.aws.Function("A", {
  link: [bucket]  // A depends on bucket
});
const fnB = new sst.aws.Function("B", {
  link: [fnA, bucket]  // B depends on A and bucket (no cycle)
});""",
        related_codes=("SST-VAL-052",),
        sst_docs_url=_SST_LINKABLE_DOCS,
        deploy_kit_docs_url="#resource-dependency-patterns",
    ),
    ErrorCatalogEntry(
        code="SST-VAL-052",
        title="Using Resource Before Declaration",
        description="Referencing a resource before it is declared can cause undefined errors.",
        category=PatternCategory.RESOURCE_DEPENDENCY,
        root_cause="JavaScript execution order - resources must be declared before use.",
        bad_example="""\
const api = new sst.aws.ApiGatewayV2("Api", {
  link: [myFunction]  // ❌ WRONG - myFunction not declared yet
});
const myFunction = new sst.aws.Function("MyFn", { ... });""",
        good_example="""\
// ✅ CORRECT - declare before use
const myFunction = new sst.aws.Function("MyFn", { ... });
const api = new sst.aws.ApiGatewayV2("Api", {
  link: [myFunction]
});""",
        related_codes=("SST-VAL-051",),
        sst_docs_url=_SST_LINKABLE_DOCS,
        deploy_kit_docs_url="#resource-dependency-patterns",
    ),
    # DynamoDB schema patterns (SST-VAL-061 to SST-VAL-070)
    ErrorCatalogEntry(
        code="SST-VAL-061",
        title="DynamoDB Fields Not Indexed - Unused Attributes",
        description=(
            'All fields defined in the "fields" property must be used in at least '
            "one index (primaryIndex, globalIndexes, or localIndexes). AWS SDK throws "
            '"all attributes must be indexed" error when fields are defined but '
            "never indexed."
        ),
        category=PatternCategory.DYNAMODB_SCHEMA,
        root_cause=(
            "DynamoDB tables require all explicitly declared fields to be indexed "
            'somewhere. Fields can still be stored without declaring them in "fields" '
            "- only declare fields you will index."
        ),
        bad_example="""\
const table = new sst.aws.Dynamo("MyTable", {
  fields: {
    id: "string",
    createdAt: "number",     // ❌ WRONG - defined but not indexed
    lastReadAt: "number"     // ❌ WRONG - defined but not indexed
  },
  primaryIndex: { hashKey: "id" }
});""",
        good_example="""\
// Option 1: Remove unused fields (they can still be stored)
const table = new sst.aws.Dynamo("MyTable", {
  fields: {
    id: "string"
  },
  primaryIndex: { hashKey: "id" }
});

// Option 2: Add indexes for the fields
const table = new sst.aws.Dynamo("MyTable", {
  fields: {
    id: "string",
    createdAt: "number",
    lastReadAt: "number"
  },
  primaryIndex: { hashKey: "id" },
  globalIndexes: {
    createdAtIndex: { hashKey: "createdAt" },
    lastReadIndex: { hashKey: "lastReadAt" }
  }
});""",
        sst_docs_url="https://sst.dev/docs/component/aws/dynamo",
        deploy_kit_docs_url="#dynamodb-schema-patterns",
    ),
]

ERROR_CATALOG: Mapping[str, ErrorCatalogEntry] = MappingProxyType(
    {entry.code: entry for entry in _ENTRIES}
)


def get_error_info(code: str) -> ErrorCatalogEntry | None:
    """Get the catalog entry for a violation code."""
    return ERROR_CATALOG.get(code)


def get_errors_by_category(category: PatternCategory | str) -> list[ErrorCatalogEntry]:
    """Get all catalog entries for a category.

    Args:
        category: PatternCategory or its string value

    Returns:
        Entries in code order
    """
    if isinstance(category, str):
        category = PatternCategory(category)
    return [entry for entry in ERROR_CATALOG.values() if entry.category == category]


def format_error_catalog_entry(entry: ErrorCatalogEntry) -> str:
    """Format a catalog entry for terminal display."""
    lines = [
        "",
        _RULE,
        f"ERROR CODE: {entry.code}",
        f"TITLE: {entry.title}",
        _RULE,
        "",
        "DESCRIPTION:",
        entry.description,
        "",
        "ROOT CAUSE:",
        entry.root_cause,
        "",
        "❌ INCORRECT CODE:",
        entry.bad_example,
        "",
        "✅ CORRECT CODE:",
        entry.good_example,
        "",
    ]
    if entry.related_codes:
        lines.append(f"RELATED ERRORS: {', '.join(entry.related_codes)}")
        lines.append("")
    if entry.sst_docs_url:
        lines.append(f"SST DOCS: {entry.sst_docs_url}")
    if entry.deploy_kit_docs_url:
        lines.append(f"DEPLOY-KIT DOCS: {entry.deploy_kit_docs_url}")
    return "\n".join(lines) + "\n"


__all__ = [
    "ERROR_CATALOG",
    "ErrorCatalogEntry",
    "format_error_catalog_entry",
    "get_error_info",
    "get_errors_by_category",
]
