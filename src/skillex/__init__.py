"""SkillEx API — skill-exchange network backend."""
