from data_designer.plugins.plugin import Plugin, PluginType

answer_grader_plugin = Plugin(
    config_qualified_name="data_designer_answer_grader.config.AnswerGraderColumnConfig",
    impl_qualified_name="data_designer_answer_grader.generator.AnswerGraderColumnGenerator",
    plugin_type=PluginType.COLUMN_GENERATOR,
)
