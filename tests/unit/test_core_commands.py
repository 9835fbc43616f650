import pytest

from jenkins_admin.core.jenkins import commands
from jenkins_admin.core.jenkins.commands import CommandTemplateRegistry, groovy_list, groovy_literal
from jenkins_admin.core.jenkins.exceptions import TemplateError


@pytest.fixture
def registry():
    return CommandTemplateRegistry()


class TestGroovyLiteral:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("alice", "'alice'"),
            ("", "''"),
            ("O'Brien", "'O\\'Brien'"),
            ("back\\slash", "'back\\\\slash'"),
            ("line\nbreak", "'line\\nbreak'"),
            ("tab\there", "'tab\\there'"),
            ("${System.exit(0)}", "'${System.exit(0)}'"),
            ("bell\x07", "'bell\\u0007'"),
            ("sep\u2028", "'sep\\u2028'"),
            ("Zoë", "'Zoë'"),
        ],
    )
    def test_escaping(self, raw, expected):
        assert groovy_literal(raw) == expected

    def test_breakout_attempt_stays_inside_literal(self):
        literal = groovy_literal("x'); Jenkins.instance.doSafeRestart(null); ('")
        body = literal[1:-1]
        # Every quote inside the literal is escaped
        assert all(body[i - 1] == "\\" for i, char in enumerate(body) if char == "'")

    def test_rejects_non_strings(self):
        with pytest.raises(TemplateError):
            groovy_literal(42)

    def test_list(self):
        assert groovy_list(["Overall/Read", "it's"]) == "['Overall/Read', 'it\\'s']"
        assert groovy_list([]) == "[]"

    def test_list_rejects_bare_string(self):
        with pytest.raises(TemplateError):
            groovy_list("Overall/Read")


class TestRegistry:
    def test_kinds_exclude_fragments(self, registry):
        assert registry.kinds == sorted([
            commands.GET_LOCAL_USER,
            commands.CREATE_LOCAL_USER,
            commands.DELETE_LOCAL_USER,
            commands.GET_USER_PERMISSIONS,
            commands.CREATE_USER_PERMISSIONS,
            commands.UPDATE_USER_PERMISSIONS,
            commands.DELETE_USER_PERMISSIONS,
            commands.LIST_PERMISSIONS,
            commands.GET_USER_GRANTS,
        ])

    def test_user_grants_script_is_not_limited_to_addressable(self, registry):
        script = registry.render(commands.GET_USER_GRANTS, username="bob")
        assert "def username = 'bob'" in script
        body = script.split("def username = 'bob'", 1)[1]
        assert "sids.contains(username)" in body
        assert "addressable" not in body

    def test_get_local_user_script(self, registry):
        script = registry.render(commands.GET_LOCAL_USER, username="alice")
        assert "def username = 'alice'" in script
        assert "!(realm instanceof HudsonPrivateSecurityRealm)" in script
        assert "'Jenkins is not using local user database'" in script
        assert "{{" not in script and "{%" not in script

    def test_create_local_user_escapes_every_field(self, registry):
        script = registry.render(
            commands.CREATE_LOCAL_USER,
            username="alice",
            password="p'w\\d",
            fullname="Alice 'A'",
            email="a@x.com",
            description="multi\nline",
        )
        assert "realm.createAccount(username, 'p\\'w\\\\d')" in script
        assert "user.setFullName('Alice \\'A\\'')" in script
        assert "new Mailer.UserProperty('a@x.com')" in script
        assert "user.setDescription('multi\\nline')" in script

    def test_permission_scripts_share_codec(self, registry):
        script = registry.render(commands.UPDATE_USER_PERMISSIONS, username="bob", permissions=["Job/Build"])
        assert "String shortName(Permission p)" in script
        assert "name = name.replace('Hudson', 'Overall')" in script
        assert "name = name.replace('LockableResourcesManager', 'LockableResources')" in script
        assert "['RunScripts', 'UploadPlugins', 'ConfigureUpdateCenter']" in script
        assert "p.id.startsWith('hudson.security.Permission')" in script
        assert "def desired = (['Job/Build'] as Set)" in script
        assert "Jenkins.instance.save()" in script

    def test_create_permissions_renders_list(self, registry):
        script = registry.render(
            commands.CREATE_USER_PERMISSIONS, username="bob", permissions=["Overall/Read", "Job/Build"]
        )
        assert "def requested = ['Overall/Read', 'Job/Build']" in script
        assert "!(strategy instanceof GlobalMatrixAuthorizationStrategy)" in script

    def test_delete_permissions_script(self, registry):
        script = registry.render(commands.DELETE_USER_PERMISSIONS, username="bob")
        assert "sids.remove(username)" in script
        assert "Jenkins.instance.save()" in script

    def test_unknown_kind(self, registry):
        with pytest.raises(TemplateError, match="Unknown command template"):
            registry.render("drop_everything", username="bob")

    def test_fragments_are_not_renderable(self, registry):
        with pytest.raises(TemplateError):
            registry.render("_permission_codec")

    def test_missing_parameter(self, registry):
        with pytest.raises(TemplateError):
            registry.render(commands.GET_LOCAL_USER)

    def test_unescaped_interpolation_is_refused(self):
        registry = CommandTemplateRegistry({"raw": "println('{{ username }}')"})
        with pytest.raises(TemplateError, match="unescaped"):
            registry.render("raw", username="alice")

    def test_malformed_template_syntax(self):
        registry = CommandTemplateRegistry({"broken": "println({{ username|groovy )"})
        with pytest.raises(TemplateError, match="broken"):
            registry.render("broken", username="alice")
